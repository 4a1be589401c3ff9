from django.urls import path

from .consumers import PromotionMetricsConsumer

websocket_urlpatterns = [
    path("ws/promotions/metrics/", PromotionMetricsConsumer.as_asgi()),
]
