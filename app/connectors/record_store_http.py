"""
app/connectors/record_store_http.py

Record store client for a remote stream failure API.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from datetime import datetime
from typing import Any

import requests

from app.config import RecordStoreHTTPSettings
from app.domain.errors import QueryError, RecordStoreRequestError
from app.domain.stream_failure import (
    ConstraintOp,
    NewFailureRecord,
    OrderByClause,
    PageWindow,
    QueryConstraint,
)
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

_COLLECTION_PATH = "/stream-failures"


class _RetryableResponse(Exception):
    """Attempt failed in a way that may succeed on retry."""


_RANGE_PARAMS: dict[tuple[str, str], str] = {
    ("created_date", ConstraintOp.GTE): "created_from",
    ("created_date", ConstraintOp.LTE): "created_to",
    ("end_date", ConstraintOp.GTE): "end_from",
    ("end_date", ConstraintOp.LTE): "end_to",
}

_MEMBERSHIP_PARAMS: dict[str, str] = {
    "org_id": "org_id",
    "failure_status": "status",
}


def _param_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def build_query_params(
    constraints: Sequence[QueryConstraint],
    order_by: Sequence[OrderByClause],
    window: PageWindow,
) -> dict[str, Any]:
    """
    Translate constraints, ordering and window into API query parameters.
    """

    params: dict[str, Any] = {}
    for constraint in constraints:
        key = (constraint.field, constraint.op)
        if constraint.field == "id" and constraint.op == ConstraintOp.ICONTAINS:
            params["id"] = constraint.value
        elif constraint.field in _MEMBERSHIP_PARAMS and constraint.op in (ConstraintOp.EQ, ConstraintOp.IN):
            values = [constraint.value] if constraint.op == ConstraintOp.EQ else list(constraint.value)
            params.setdefault(_MEMBERSHIP_PARAMS[constraint.field], []).extend(values)
        elif key in _RANGE_PARAMS:
            params[_RANGE_PARAMS[key]] = _param_value(constraint.value)
        else:
            raise QueryError(
                f"Constraint {constraint.field} {constraint.op} is not supported by the remote store."
            )

    if order_by:
        params["sort"] = order_by[0].field
        params["direction"] = order_by[0].direction

    page_size = max(1, window.size)
    params["page"] = window.start // page_size
    params["page_size"] = page_size
    return params


class HttpRecordStore:
    """
    RecordStore implementation calling the stream failure REST API.

    Requests run on a worker thread; retryable statuses and transport errors
    are retried with exponential backoff before RecordStoreRequestError is
    raised.
    """

    def __init__(
        self,
        *,
        settings: RecordStoreHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._base_url = settings.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds
        self._max_retries = settings.max_retries
        self._backoff_initial_seconds = settings.backoff_initial_seconds
        self._backoff_multiplier = settings.backoff_multiplier
        self._sleep = sleep

    async def query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[Mapping[str, Any]]:
        params = build_query_params(constraints, order_by, window)
        payload = await asyncio.to_thread(
            self._request_json,
            method="GET",
            url=f"{self._base_url}{_COLLECTION_PATH}",
            params=params,
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise RecordStoreRequestError("Record store response did not contain an item list.")
        return [item for item in items if isinstance(item, dict)]

    async def insert(self, record: NewFailureRecord) -> Mapping[str, Any]:
        body = {
            "org_id": record.org_id,
            "failure_status": record.failure_status,
            "failure_payload": record.failure_payload,
        }
        payload = await asyncio.to_thread(
            self._request_json,
            method="POST",
            url=f"{self._base_url}{_COLLECTION_PATH}",
            json_body=body,
        )
        if not isinstance(payload, dict):
            raise RecordStoreRequestError("Record store returned a non-object row.")
        return payload

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        response = self._request(method=method, url=url, params=params, json_body=json_body)
        try:
            return response.json()
        except ValueError as exc:
            raise RecordStoreRequestError("Record store response was not valid JSON.") from exc

    def _backoff_delays(self) -> Iterator[float]:
        delay = self._backoff_initial_seconds
        for _ in range(self._max_retries):
            yield delay
            delay *= self._backoff_multiplier

    def _send_once(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Send a single request.

        Transport errors and retryable statuses raise _RetryableResponse;
        any other non-2xx status raises RecordStoreRequestError.
        """

        try:
            response = self._session.request(
                method=method,
                url=url,
                timeout=self._timeout_seconds,
                **kwargs,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise _RetryableResponse(f"transport error: {exc}") from exc

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _RetryableResponse(f"status {response.status_code}")
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            log_event(
                logger,
                logging.ERROR,
                "record_store_request_rejected",
                method=method,
                status=response.status_code,
                url=url,
            )
            raise RecordStoreRequestError(
                f"Record store rejected {method} request (status {response.status_code})."
            ) from exc
        return response

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> requests.Response:
        data = json.dumps(json_body, default=str) if json_body is not None else None
        headers = {"Content-Type": "application/json"} if data is not None else None

        delays = self._backoff_delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._send_once(method, url, params=params, data=data, headers=headers)
            except _RetryableResponse as exc:
                delay = next(delays, None)
                if delay is None:
                    log_event(
                        logger,
                        logging.ERROR,
                        "record_store_retries_exhausted",
                        method=method,
                        attempts=attempt,
                        reason=str(exc),
                        url=url,
                    )
                    raise RecordStoreRequestError(
                        f"Record store request failed after {attempt} attempts."
                    ) from exc
                log_event(
                    logger,
                    logging.WARNING,
                    "record_store_request_retry",
                    method=method,
                    attempt=attempt,
                    reason=str(exc),
                    url=url,
                    wait_seconds=delay,
                )
                self._sleep(delay)
