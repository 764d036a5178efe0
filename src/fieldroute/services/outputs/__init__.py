"""Route output serializers."""

from .route_formatter import route_view_to_csv, route_view_to_json

__all__ = ["route_view_to_json", "route_view_to_csv"]
