from django.conf import settings
from django.http import HttpResponse


class SimpleCorsMiddleware:
    """
    CORS for the promotions front-end. Origins come from CORS_ALLOWED_ORIGINS;
    "*" allows any origin (development only).
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.allowed = set(getattr(settings, "CORS_ALLOWED_ORIGINS", ["*"]))

    def _allow_origin(self, request):
        origin = request.headers.get("Origin")
        if "*" in self.allowed:
            return origin or "*"
        return origin if origin in self.allowed else None

    def __call__(self, request):
        if request.method == "OPTIONS" and request.headers.get("Access-Control-Request-Method"):
            response = HttpResponse()
        else:
            response = self.get_response(request)

        origin = self._allow_origin(request)
        if origin is None:
            return response
        response["Access-Control-Allow-Origin"] = origin
        response["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        response["Access-Control-Allow-Headers"] = request.headers.get(
            "Access-Control-Request-Headers", "Content-Type, Authorization"
        )
        response["Access-Control-Allow-Credentials"] = "true"
        if origin != "*":
            response["Vary"] = "Origin"
        return response
