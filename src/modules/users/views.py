"""User API views.

Exposes the ``UserService`` via HTTP using a DRF ``ViewSet``.  Domain
errors propagate to ``modules.core.exception_handler``; views only parse
input into DTOs and render output DTOs.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.serializers import page_params
from modules.users.dtos import CreateUserDTO, UpdateUserDTO, UserFilterDTO
from modules.users.repositories.django_repository import UserDjangoRepository
from modules.users.services import UserService


class UserViewSet(ViewSet):
    """ViewSet for User operations.

    ``DELETE`` deactivates instead of removing the row.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = UserService(repository=UserDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/users/?status=&search=&ordering=&page=&page_size="""
        page, page_size = page_params(request)
        filters = UserFilterDTO.model_validate(request.query_params.dict())
        result = self._service.list_users(filters, page=page, page_size=page_size)
        return Response(result.model_dump(mode="json"))

    def create(self, request: Request) -> Response:
        """POST /api/v1/users/"""
        dto = CreateUserDTO.model_validate(request.data)
        user = self._service.create_user(dto)
        return Response(user.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/users/{pk}/"""
        user = self._service.get_user(pk)
        return Response(user.model_dump(mode="json"))

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/users/{pk}/"""
        patch = UpdateUserDTO.model_validate(request.data)
        user = self._service.update_user(pk, patch)
        return Response(user.model_dump(mode="json"))

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/users/{pk}/ (deactivate)"""
        user = self._service.deactivate_user(pk)
        return Response(user.model_dump(mode="json"))

    @action(detail=True, methods=["get"])
    def stats(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/users/{pk}/stats/"""
        stats = self._service.get_user_stats(pk)
        return Response(stats.model_dump(mode="json"))
