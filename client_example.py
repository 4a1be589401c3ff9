"""
Minimal Python client driving a promotion run through the API.
Requires: pip install requests
Usage:
  python client_example.py --host http://127.0.0.1:8000 --user admin --password secret --school demo --year 2024
  python client_example.py ... --execute --async
"""

import argparse
import time

import requests


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default="http://127.0.0.1:8000")
    parser.add_argument("--user", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--school", required=True, help="School code")
    parser.add_argument("--year", default="", help="Academic year id or name (default: current)")
    parser.add_argument("--execute", action="store_true", help="Promote after the preview")
    parser.add_argument("--async", dest="run_async", action="store_true", help="Run the promotion on a worker")
    args = parser.parse_args()

    session = requests.Session()
    # basic auth keeps the example short, prefer session or token auth in production
    session.auth = (args.user, args.password)
    base = f"{args.host}/api/schools/{args.school}"

    resp = session.post(f"{base}/promotion-runs", json={"academicYearId": args.year})
    resp.raise_for_status()
    run_id = resp.json()["id"]
    print(f"Run created, id={run_id}")

    resp = session.post(f"{base}/promotion-runs/{run_id}/preview")
    resp.raise_for_status()
    snapshot = resp.json()["snapshot"]
    for student in snapshot["ineligible"]:
        print(f"  not eligible: {student['studentName']} ({student['currentClass']}): {student['reason']}")
    print(f"{len(snapshot['eligible'])} eligible, {len(snapshot['ineligible'])} ineligible")

    if not args.execute:
        print(f"Preview only. Execute later with POST {base}/promotion-runs/{run_id}/execute")
        return

    resp = session.post(
        f"{base}/promotion-runs/{run_id}/execute",
        json={"confirmation": "CONFIRM", "promotedBy": args.user, "runAsync": args.run_async},
    )
    if resp.status_code >= 400:
        print(f"Execution refused ({resp.status_code}): {resp.json().get('error')}")
        return
    payload = resp.json()

    # queued runs: poll until the worker has stored the results
    for _ in range(30):
        if payload.get("stage") == "results":
            result = payload.get("result") or payload
            print(
                f"Promoted: {len(result['promoted'])}, excluded: {len(result['excluded'])}, "
                f"skipped: {len(result['skipped'])}, errors: {len(result['errors'])}"
            )
            for error in result["errors"]:
                print(f"  student {error['studentId']}: {error['error']}")
            return
        time.sleep(2)
        payload = session.get(f"{base}/promotion-runs/{run_id}").json()
    print("Timeout before the run finished.")


if __name__ == "__main__":
    main()
