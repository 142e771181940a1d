"""Read-only product endpoints."""

from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import viewsets

from . import selectors
from .models import Product
from .serializers import ProductSerializer


class ProductFilterSet(filters.FilterSet):
    min_price = filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = filters.NumberFilter(field_name="price", lookup_expr="lte")
    in_stock = filters.BooleanFilter(method="filter_in_stock")

    class Meta:
        model = Product
        fields = ["min_price", "max_price", "in_stock"]

    def filter_in_stock(self, queryset, name, value):
        return queryset.filter(stock__gt=0) if value else queryset.filter(stock=0)


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description="Returns active products. Filters: `min_price`, `max_price`, `in_stock`; `search`; `ordering`.",
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("ordering", OpenApiTypes.STR, location="query", description="`name`, `price`, `created_at`"),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search name, SKU, description"),
        ],
    ),
    retrieve=extend_schema(
        summary="Get product by slug",
        description="Returns a single active product",
        tags=["Catalog Endpoints"],
    ),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    lookup_field = "slug"
    lookup_value_regex = "[^/]+"
    filterset_class = ProductFilterSet
    throttle_scope = "catalog"
    ordering_fields = ["name", "price", "created_at"]
    search_fields = ["name", "sku", "description"]

    def get_queryset(self):
        return selectors.list_active_products()
