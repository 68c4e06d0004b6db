"""Query-string parsing shared by the list endpoints."""

from __future__ import annotations

from typing import Optional, Tuple

from rest_framework import serializers
from rest_framework.request import Request


class PageQuerySerializer(serializers.Serializer):
    """Validates ``?page=&page_size=``; oversized pages are clamped later."""

    page = serializers.IntegerField(min_value=1, default=1)
    page_size = serializers.IntegerField(min_value=1, required=False)


def page_params(request: Request) -> Tuple[int, Optional[int]]:
    serializer = PageQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    return data["page"], data.get("page_size")
