"""Failure kinds raised by the services; each maps to one HTTP status."""

from __future__ import annotations


class StoreError(Exception):
    """Base class: the operation was rejected and nothing was persisted."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(StoreError):
    status_code = 409


class UnauthorizedError(StoreError):
    status_code = 401


class NotFoundError(StoreError):
    status_code = 404


class BadRequestError(StoreError):
    status_code = 400
