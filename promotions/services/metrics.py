import logging
import time
from typing import Optional

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

COUNTERS = ("promoted", "excluded", "errors", "skipped")


def _client():
    """
    Default to CELERY_BROKER_URL if it is Redis, otherwise fallback to localhost.
    """
    url = getattr(settings, "METRICS_REDIS_URL", None) or getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
    return redis.Redis.from_url(url, socket_connect_timeout=1, socket_timeout=1)


def _safe_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def reset_metrics():
    cli = _client()
    pipe = cli.pipeline()
    pipe.delete("promotions:runs", "promotions:last_run", *[f"promotions:{name}" for name in COUNTERS])
    pipe.set("promotions:start", time.time())
    pipe.execute()


def record_batch(school_id: int, result: dict):
    """
    Add one executed batch to the counters. Redis being down must not fail
    a promotion, so errors are only logged.
    """
    try:
        cli = _client()
        pipe = cli.pipeline()
        pipe.setnx("promotions:start", time.time())
        pipe.incr("promotions:runs")
        for name in COUNTERS:
            pipe.incrby(f"promotions:{name}", len(result.get(name, [])))
        pipe.hset(
            "promotions:last_run",
            mapping={
                "school_id": school_id,
                "finished_at": time.time(),
                **{name: len(result.get(name, [])) for name in COUNTERS},
            },
        )
        pipe.execute()
    except redis.exceptions.RedisError as exc:
        logger.warning("Unable to record promotion metrics: %s", exc)


def get_metrics() -> Optional[dict]:
    """
    Returns counters from Redis. If Redis is unreachable, returns None.
    """
    try:
        cli = _client()
        counters = {name: _safe_int(cli.get(f"promotions:{name}")) for name in COUNTERS}
        runs = _safe_int(cli.get("promotions:runs"))
        start_val = cli.get("promotions:start")
        last = cli.hgetall("promotions:last_run")
    except redis.exceptions.RedisError:
        return None
    started_at = float(start_val) if start_val else None
    return {
        "runs": runs,
        **counters,
        "started_at": started_at,
        "last_run": {k.decode(): v.decode() for k, v in last.items()} if last else None,
    }
