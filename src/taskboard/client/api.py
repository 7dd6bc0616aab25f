"""HTTP client that keeps the client stores in step with the API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from .state import AuthStore, TaskState, TaskStore

logger = logging.getLogger(__name__)


class ClientRequestError(Exception):
    """An API call answered with the error envelope."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.errors = errors or []


class TaskBoardClient:
    """Thin wrapper around :class:`httpx.AsyncClient` for the task board API.

    ``http`` must already point at the API root (for example
    ``http://localhost:5000/api``). A 401 from any call signs the user out.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        tasks: TaskStore | None = None,
        auth: AuthStore | None = None,
    ) -> None:
        self._http = http
        self.tasks = tasks or TaskStore()
        self.auth = auth or AuthStore()

    def _headers(self) -> dict[str, str]:
        token = self.auth.state.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
        fallback: str = "Request failed",
    ) -> dict[str, Any]:
        response = await self._http.request(
            method, path, json=json, params=params, headers=self._headers()
        )
        try:
            body: dict[str, Any] = response.json()
        except ValueError:
            body = {}
        if response.is_success:
            return body
        if response.status_code == httpx.codes.UNAUTHORIZED and self.auth.state.token:
            logger.info("Session rejected by the API; signing out")
            self.auth.logout()
        raise ClientRequestError(
            body.get("message") or fallback,
            status_code=response.status_code,
            code=body.get("code"),
            errors=body.get("errors"),
        )

    # Auth

    async def register(self, email: str, password: str, role: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"email": email, "password": password}
        if role:
            payload["role"] = role
        self.auth.request_started()
        try:
            body = await self._request("POST", "/auth/register", json=payload, fallback="Registration failed")
        except ClientRequestError as exc:
            self.auth.request_failed(exc.message)
            raise
        self.auth.signed_in(body["data"]["token"], body["data"]["user"])
        return body["data"]["user"]

    async def login(self, email: str, password: str) -> dict[str, Any]:
        self.auth.request_started()
        try:
            body = await self._request(
                "POST", "/auth/login", json={"email": email, "password": password}, fallback="Login failed"
            )
        except ClientRequestError as exc:
            self.auth.request_failed(exc.message)
            raise
        self.auth.signed_in(body["data"]["token"], body["data"]["user"])
        return body["data"]["user"]

    async def fetch_current_user(self) -> dict[str, Any]:
        body = await self._request("GET", "/auth/me", fallback="Failed to load profile")
        self.auth.user_loaded(body["data"]["user"])
        return body["data"]["user"]

    async def update_profile(self, **changes: Any) -> dict[str, Any]:
        body = await self._request("PUT", "/auth/me", json=changes, fallback="Failed to update profile")
        self.auth.user_loaded(body["data"]["user"])
        return body["data"]["user"]

    def logout(self) -> None:
        self.auth.logout()
        self.tasks.state = TaskState()

    # Tasks

    async def fetch_tasks(self) -> list[dict[str, Any]]:
        self.tasks.request_started()
        try:
            body = await self._request(
                "GET", "/tasks", params=self.tasks.query_params(), fallback="Failed to fetch tasks"
            )
        except ClientRequestError as exc:
            self.tasks.request_failed(exc.message)
            raise
        self.tasks.tasks_loaded(body["data"]["tasks"], body["data"]["pagination"])
        return self.tasks.state.tasks

    async def fetch_task(self, task_id: str) -> dict[str, Any]:
        self.tasks.request_started()
        try:
            body = await self._request("GET", f"/tasks/{task_id}", fallback="Failed to fetch task")
        except ClientRequestError as exc:
            self.tasks.request_failed(exc.message)
            raise
        self.tasks.task_loaded(body["data"]["task"])
        return body["data"]["task"]

    async def create_task(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        self.tasks.request_started()
        try:
            body = await self._request("POST", "/tasks", json=fields, fallback="Failed to create task")
        except ClientRequestError as exc:
            self.tasks.request_failed(exc.message)
            raise
        self.tasks.task_created(body["data"]["task"])
        return body["data"]["task"]

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        self.tasks.request_started()
        try:
            body = await self._request("PUT", f"/tasks/{task_id}", json=fields, fallback="Failed to update task")
        except ClientRequestError as exc:
            self.tasks.request_failed(exc.message)
            raise
        self.tasks.task_updated(body["data"]["task"])
        return body["data"]["task"]

    async def delete_task(self, task_id: str) -> None:
        self.tasks.request_started()
        try:
            await self._request("DELETE", f"/tasks/{task_id}", fallback="Failed to delete task")
        except ClientRequestError as exc:
            self.tasks.request_failed(exc.message)
            raise
        self.tasks.task_deleted(task_id)

    async def fetch_statistics(self) -> dict[str, Any]:
        body = await self._request("GET", "/tasks/statistics", fallback="Failed to load statistics")
        return body["data"]

    # Users

    async def search_users(self, query: str) -> list[dict[str, Any]]:
        body = await self._request("GET", "/users/search", params={"query": query}, fallback="Search failed")
        return body["data"]["users"]


__all__ = ["ClientRequestError", "TaskBoardClient"]
