"""FastAPI application that exposes the user record endpoints."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from .config import load_settings
from .database import Database
from .exceptions import StorageError, ValidationError
from .models import User
from .records import UserRecords

logger = logging.getLogger("user_management.api")

STORAGE_ERROR_MESSAGE = "Database error"


class CreateUserRequest(BaseModel):
    full_name: Optional[str] = None
    mob_num: Optional[str] = None
    pan_num: Optional[str] = None
    manager_id: Optional[str] = None


class CreateUserResponse(BaseModel):
    message: str
    user_id: str


class UserQueryRequest(BaseModel):
    user_id: Optional[str] = None
    mob_num: Optional[str] = None
    manager_id: Optional[str] = None


class UserResponse(BaseModel):
    user_id: str
    full_name: str
    mob_num: str
    pan_num: str
    manager_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    is_active: bool


class UserListResponse(BaseModel):
    users: List[UserResponse] = Field(default_factory=list)


class DeleteUserRequest(BaseModel):
    user_id: Optional[str] = None
    mob_num: Optional[str] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1)
    mob_num: Optional[str] = Field(default=None, min_length=1)
    pan_num: Optional[str] = Field(default=None, min_length=1)
    manager_id: Optional[str] = None
    is_active: Optional[bool] = None

    class Config:
        extra = "allow"

    def to_fields(self) -> Dict[str, Any]:
        """Return only the keys the client sent, unknown ones included."""

        fields = self.model_dump(exclude_unset=True)
        fields.update(self.model_extra or {})
        return fields


class UpdateUserRequest(BaseModel):
    user_ids: Optional[List[str]] = None
    update_data: Optional[UserUpdate] = None


class MessageResponse(BaseModel):
    message: str


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        full_name=user.full_name,
        mob_num=user.mob_num,
        pan_num=user.pan_num,
        manager_id=user.manager_id,
        created_at=user.created_at,
        updated_at=user.updated_at,
        is_active=user.is_active,
    )


def create_app(
    *,
    database: Database | None = None,
) -> FastAPI:
    if database is None:
        settings = load_settings()
        database = Database(settings.database_path)
        database.initialize(settings.managers)

    app = FastAPI(
        title="User Management Service",
        description="Create, query, update and delete user records owned by managers",
        version="1.0.0",
    )
    app.state.database = database

    @app.exception_handler(ValidationError)
    async def _handle_validation_error(request: Request, exc: ValidationError) -> PlainTextResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StorageError)
    async def _handle_storage_error(request: Request, exc: StorageError) -> PlainTextResponse:
        logger.error(
            "Storage failure while handling %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return PlainTextResponse(STORAGE_ERROR_MESSAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    def get_db(request: Request) -> Database:
        return request.app.state.database

    def get_records(db: Database = Depends(get_db)) -> UserRecords:
        return UserRecords(db)

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/create_user", response_model=CreateUserResponse)
    def create_user(
        payload: CreateUserRequest,
        records: UserRecords = Depends(get_records),
    ) -> CreateUserResponse:
        user_id = records.create_user(
            full_name=payload.full_name,
            mob_num=payload.mob_num,
            pan_num=payload.pan_num,
            manager_id=payload.manager_id,
        )
        return CreateUserResponse(message="User created successfully", user_id=user_id)

    @app.post("/get_users", response_model=UserListResponse)
    def get_users(
        payload: Optional[UserQueryRequest] = None,
        records: UserRecords = Depends(get_records),
    ) -> UserListResponse:
        filters = payload or UserQueryRequest()
        users = records.query_users(
            user_id=filters.user_id,
            mob_num=filters.mob_num,
            manager_id=filters.manager_id,
        )
        return UserListResponse(users=[user_to_response(user) for user in users])

    @app.post("/delete_user", response_model=MessageResponse)
    def delete_user(
        payload: DeleteUserRequest,
        records: UserRecords = Depends(get_records),
    ) -> MessageResponse:
        records.delete_users(user_id=payload.user_id, mob_num=payload.mob_num)
        return MessageResponse(message="User deleted successfully")

    @app.post("/update_user", response_model=MessageResponse)
    def update_user(
        payload: UpdateUserRequest,
        records: UserRecords = Depends(get_records),
    ) -> MessageResponse:
        update_data = payload.update_data.to_fields() if payload.update_data is not None else None
        records.update_users(payload.user_ids, update_data)
        return MessageResponse(message="Users updated successfully")

    return app


__all__ = ["STORAGE_ERROR_MESSAGE", "create_app", "user_to_response"]
