"""Request/response helpers shared by the JSON API views.

Views raise :class:`ApiError` for anything the client got wrong; the
:func:`api_view` decorator turns it into a ``{"error": ...}`` response and
logs anything unexpected before answering with a 500.  The module also
holds the pagination helpers used by every list endpoint and small
parsers for identifiers and query-string filters.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from functools import wraps
from math import ceil
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from django.conf import settings
from django.core.exceptions import NON_FIELD_ERRORS
from django.db import models
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised by views and services when a request cannot be fulfilled."""

    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def bad_request(message: str) -> JsonResponse:
    return JsonResponse({'error': message}, status=400)


def not_found(message: str = 'Not found') -> JsonResponse:
    return JsonResponse({'error': message}, status=404)


def server_error(message: str = 'Internal Server Error') -> JsonResponse:
    return JsonResponse({'error': message}, status=500)


def api_view(*methods: str) -> Callable:
    """Decorate a JSON API view.

    The view is restricted to ``methods`` (others get a JSON 405 with an
    ``Allow`` header), exempted from CSRF checks (the API is consumed by
    script clients sending JSON) and wrapped so that :class:`ApiError`
    becomes a JSON error response.  Any other exception is logged with its
    traceback and reported as a 500.
    """

    allowed = [method.upper() for method in methods]

    def decorator(view: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
        @wraps(view)
        def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
            if request.method not in allowed:
                logger.warning('Method Not Allowed (%s): %s', request.method, request.path)
                response = JsonResponse({'error': 'Method not allowed'}, status=405)
                response['Allow'] = ', '.join(allowed)
                return response
            try:
                return view(request, *args, **kwargs)
            except ApiError as exc:
                return JsonResponse({'error': exc.message}, status=exc.status)
            except Exception:
                logger.exception('Unhandled error in %s %s', request.method, request.path)
                return server_error()

        return csrf_exempt(wrapper)

    return decorator


def parse_json_body(request: HttpRequest) -> Dict[str, Any]:
    """Decode the request body as a JSON object."""

    try:
        payload = json.loads(request.body.decode('utf-8')) if request.body else {}
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ApiError('Invalid JSON body') from None
    if not isinstance(payload, dict):
        raise ApiError('JSON body must be an object')
    return payload


def parse_id(raw: Any, label: str = '') -> int:
    """Return ``raw`` as a positive integer identifier."""

    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        value = 0
    if value < 1:
        raise ApiError(f"Invalid {label} ID" if label else 'Invalid ID')
    return value


def get_object_or_404_json(
    source: Type[models.Model] | models.QuerySet,
    raw_pk: Any,
    label: str,
) -> models.Model:
    """Fetch a row by primary key or raise a 404 :class:`ApiError`."""

    pk = parse_id(raw_pk, label)
    queryset = source if isinstance(source, models.QuerySet) else source.objects.all()
    try:
        return queryset.get(pk=pk)
    except queryset.model.DoesNotExist:
        raise ApiError(f"{label[:1].upper()}{label[1:]} not found", status=404) from None


def parse_date_param(params: Mapping[str, Any], name: str) -> Optional[date]:
    """Parse an optional ``YYYY-MM-DD`` query parameter."""

    raw = params.get(name)
    if not raw:
        return None
    text = str(raw).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        try:
            return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
        except ValueError:
            raise ApiError(f"Invalid {name}: expected YYYY-MM-DD") from None


def parse_int_param(params: Mapping[str, Any], name: str) -> Optional[int]:
    """Parse an optional integer query parameter."""

    raw = params.get(name)
    if raw in (None, ''):
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ApiError(f"Invalid {name}: expected an integer") from None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _coerce_int(raw: Any, default: int) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def get_pagination(params: Mapping[str, Any]) -> Pagination:
    """Read ``page``/``pageSize`` from query parameters.

    Missing or non-numeric values fall back to the defaults; the page is at
    least 1 and the page size is clamped to the configured maximum.
    """

    default_size = settings.BACKOFFICE_DEFAULT_PAGE_SIZE
    max_size = settings.BACKOFFICE_MAX_PAGE_SIZE
    page = max(1, _coerce_int(params.get('page'), 1))
    page_size = min(max_size, max(1, _coerce_int(params.get('pageSize'), default_size)))
    return Pagination(page=page, page_size=page_size)


def pagination_meta(page: int, page_size: int, total: int) -> Dict[str, Any]:
    total_pages = ceil(total / page_size) if page_size else 0
    return {
        'page': page,
        'pageSize': page_size,
        'total': total,
        'totalPages': total_pages,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


def paginate(queryset: models.QuerySet, params: Mapping[str, Any]) -> Tuple[List[Any], Dict[str, Any]]:
    """Slice ``queryset`` for the requested page and build the metadata."""

    pagination = get_pagination(params)
    total = queryset.count()
    if pagination.offset >= total:
        items = []
    else:
        items = list(queryset[pagination.offset:pagination.offset + pagination.page_size])
    return items, pagination_meta(pagination.page, pagination.page_size, total)


def paginated_response(items: List[Dict[str, Any]], meta: Dict[str, Any]) -> JsonResponse:
    return JsonResponse({'data': items, **meta})


# ---------------------------------------------------------------------------
# Form glue
# ---------------------------------------------------------------------------


def payload_to_form_data(payload: Mapping[str, Any], field_map: Mapping[str, str]) -> Dict[str, Any]:
    """Translate the camelCase keys present in ``payload`` to form field names."""

    return {field: payload[key] for key, field in field_map.items() if key in payload}


def form_error_message(form: Any, field_map: Optional[Mapping[str, str]] = None) -> str:
    """Flatten ``form.errors`` into ``wireField: message; ...``."""

    reverse = {field: key for key, field in (field_map or {}).items()}
    parts = []
    for field, errors in form.errors.items():
        text = ' '.join(str(error) for error in errors)
        if field == NON_FIELD_ERRORS:
            parts.append(text)
        else:
            parts.append(f"{reverse.get(field, field)}: {text}")
    return '; '.join(parts)
