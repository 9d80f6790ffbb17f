"""Unit tests for call router endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from creator_live.api.v1.dependency import User, get_current_user
from creator_live.api.v1.errors import app_error_handler
from creator_live.api.v1.routers.call import get_call_service, router
from creator_live.domain.call.call_domain import CallCredential, CallService
from creator_live.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


@pytest.fixture
def mock_call_service() -> AsyncMock:
    return AsyncMock(spec=CallService)


@pytest.fixture
def client(mock_call_service: AsyncMock) -> TestClient:
    app = FastAPI()
    app.dependency_overrides[get_current_user] = lambda: User(user_id=7)
    app.dependency_overrides[get_call_service] = lambda: mock_call_service
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return TestClient(app)


class TestCallDetails:
    def test_success(self, client: TestClient, mock_call_service: AsyncMock):
        mock_call_service.get_call_credential.return_value = CallCredential(
            app_id="APItestkey", app_secret="cert", token="signed.jwt", uid=17
        )

        response = client.get("/call/agora/details", params={"room_id": "room-abc", "user_id": 7})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Agora app details retrieved successfully"
        assert body["data"] == {
            "agoraAppCertificate": "cert",
            "agoraAppId": "APItestkey",
            "token": "signed.jwt",
            "uid": 17,
        }
        mock_call_service.get_call_credential.assert_awaited_once_with(7, "room-abc", "7")

    def test_missing_params_are_passed_through(self, client: TestClient, mock_call_service: AsyncMock):
        mock_call_service.get_call_credential.side_effect = AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Missing required parameters: room_id is required",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

        response = client.get("/call/agora/details")

        assert response.status_code == 400
        mock_call_service.get_call_credential.assert_awaited_once_with(7, None, None)

    def test_non_numeric_user_id_reaches_the_service(self, client: TestClient, mock_call_service: AsyncMock):
        mock_call_service.get_call_credential.side_effect = AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="Invalid user_id: must be an integer",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

        response = client.get("/call/agora/details", params={"room_id": "room-abc", "user_id": "abc"})

        assert response.status_code == 400
        assert response.json()["errcode"] == "E_INVALID_REQUEST"
        mock_call_service.get_call_credential.assert_awaited_once_with(7, "room-abc", "abc")

    def test_denied(self, client: TestClient, mock_call_service: AsyncMock):
        mock_call_service.get_call_credential.side_effect = AppError(
            errcode=AppErrorCode.E_ROOM_ACCESS_DENIED,
            errmesg="Unauthorized access to this room",
            status_code=HttpStatusCode.FORBIDDEN,
        )

        response = client.get("/call/agora/details", params={"room_id": "room-abc", "user_id": 7})

        assert response.status_code == 403
        assert response.json()["errcode"] == "E_ROOM_ACCESS_DENIED"
