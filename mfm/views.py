"""JSON endpoints for MFM parsing, validation, migration and lookups."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Callable

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from mfm import queries
from mfm.exceptions import MfmError
from mfm.migration import run_migration
from mfm.persistence import MfmParseResult, parse_and_store_mfm_file, parse_and_store_mfm_text
from mfm.validation import regenerate_mfm_text, save_validation_report, validate_mfm_data

logger = logging.getLogger(__name__)

View = Callable[..., HttpResponse]


class ParameterError(Exception):
    """Raised when a request parameter is missing or malformed."""


def _param(request: HttpRequest, name: str) -> str:
    value = request.POST.get(name) or request.GET.get(name)
    if not value:
        raise ParameterError(f"Missing required parameter: {name}")
    return value


def _version(request: HttpRequest) -> str:
    return request.GET.get("version") or queries.LATEST


def _flag(request: HttpRequest, name: str) -> bool:
    value = request.POST.get(name) or request.GET.get(name) or ""
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_response(result: MfmParseResult) -> JsonResponse:
    if result.stored:
        message = "MFM file parsed and stored successfully"
    else:
        message = f"MFM version {result.version} is already stored; nothing was written"
    return JsonResponse({"success": True, **result.as_json(), "message": message})


def _method_not_allowed(allowed: str) -> JsonResponse:
    response = JsonResponse({"success": False, "error": f"Use {allowed}."}, status=405)
    response["Allow"] = allowed
    return response


def _failure(exc: Exception, message: str, *, status: int) -> JsonResponse:
    return JsonResponse({"success": False, "error": str(exc), "message": message}, status=status)


def _staff_only(view: View) -> View:
    """Reject anonymous and non-staff users with a JSON 403."""

    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
        user = request.user
        if not (user.is_authenticated and user.is_staff):
            return JsonResponse({"success": False, "error": "Staff access required."}, status=403)
        return view(request, *args, **kwargs)

    return wrapper


def _raw_parser_endpoint(method: str, failure_message: str) -> Callable[[View], View]:
    """Wrap a raw-parser view with method checks and error-to-status mapping.

    MFM errors, missing files and missing parameters become 400 responses;
    anything else becomes a 500 response.
    """

    def decorate(view: View) -> View:
        @wraps(view)
        def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            if request.method != method:
                return _method_not_allowed(method)
            try:
                return view(request, *args, **kwargs)
            except (MfmError, FileNotFoundError, ParameterError, UnicodeDecodeError) as exc:
                logger.warning("%s: %s", failure_message, exc)
                return _failure(exc, failure_message, status=400)
            except Exception as exc:
                logger.exception(failure_message)
                return _failure(exc, failure_message, status=500)

        return wrapper

    return decorate


@csrf_exempt
@_staff_only
@_raw_parser_endpoint("POST", "Failed to parse MFM file")
def parse_upload(request: HttpRequest) -> JsonResponse:
    """Parse and store an uploaded bulletin (multipart field `file`, optional `overwrite`)."""

    upload = request.FILES.get("file")
    if upload is None:
        raise ParameterError("Missing required parameter: file")
    logger.info("Received MFM file for parsing: %s", upload.name)
    text = upload.read().decode("utf-8")
    overwrite = _flag(request, "overwrite")
    result = parse_and_store_mfm_text(text, source_name=upload.name or "upload.txt", overwrite=overwrite)
    return _parse_response(result)


@csrf_exempt
@_staff_only
@_raw_parser_endpoint("POST", "Failed to parse MFM file")
def parse_file(request: HttpRequest) -> JsonResponse:
    """Parse and store a bulletin already on the server (`filePath`, optional `overwrite`)."""

    file_path = _param(request, "filePath")
    result = parse_and_store_mfm_file(file_path, overwrite=_flag(request, "overwrite"))
    return _parse_response(result)


@csrf_exempt
@_staff_only
@_raw_parser_endpoint("POST", "Failed to validate MFM data")
def validate(request: HttpRequest) -> JsonResponse:
    """Compare stored data for `version` against `originalFilePath`."""

    version = _param(request, "version")
    original_path = _param(request, "originalFilePath")
    logger.info("Validating MFM data for version: %s against file: %s", version, original_path)
    result = validate_mfm_data(version, original_path)
    return JsonResponse({"success": True, **result.as_json(), "message": "Validation completed"})


@_raw_parser_endpoint("GET", "Failed to regenerate MFM file")
def regenerate(request: HttpRequest, version: str) -> JsonResponse:
    content = regenerate_mfm_text(version)
    return JsonResponse(
        {"success": True, "version": version, "content": content, "message": "MFM file regenerated successfully"}
    )


@csrf_exempt
@_staff_only
@_raw_parser_endpoint("POST", "Failed to generate validation report")
def validation_report(request: HttpRequest) -> JsonResponse:
    """Validate a version and save the report under the reports directory."""

    version = _param(request, "version")
    original_path = _param(request, "originalFilePath")
    output_path = _param(request, "outputPath")
    result = validate_mfm_data(version, original_path)
    report_path = save_validation_report(result, output_path)
    payload = result.as_json()
    del payload["differences"]
    return JsonResponse(
        {
            "success": True,
            **payload,
            "reportPath": str(report_path),
            "message": "Validation report generated successfully",
        }
    )


@_raw_parser_endpoint("GET", "Failed to get parsing stats")
def stats(request: HttpRequest, version: str) -> JsonResponse:
    return JsonResponse({"success": True, **queries.version_stats(version)})


@csrf_exempt
@_staff_only
def admin_migrate(request: HttpRequest) -> JsonResponse:
    """Run the structured-file migration on demand."""

    if request.method != "POST":
        return _method_not_allowed("POST")

    logger.info("Manual MFM migration triggered by %s", request.user)
    try:
        summary = run_migration()
    except Exception as exc:
        logger.exception("Error during manual MFM migration")
        return JsonResponse({"success": False, "message": f"Error during MFM migration: {exc}"}, status=500)
    return JsonResponse(
        {"success": True, "message": "MFM migration completed successfully", "summary": summary.as_json()}
    )


@_staff_only
def admin_status(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed("GET")

    enabled = bool(settings.MFM_MIGRATION_ENABLED)
    latest = queries.find_version(queries.LATEST)
    return JsonResponse(
        {
            "migrationEnabled": enabled,
            "migrationDirectory": str(settings.MFM_MIGRATION_DIRECTORY),
            "overwriteExisting": bool(settings.MFM_MIGRATION_OVERWRITE_EXISTING),
            "latestVersion": latest.version if latest is not None else None,
            "message": "MFM migration system is active" if enabled else "MFM migration system is disabled",
        }
    )


def _lookup_endpoint(view: View) -> View:
    """Restrict a lookup view to GET and answer missing parameters with 400."""

    @wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
        if request.method != "GET":
            return _method_not_allowed("GET")
        try:
            return view(request, *args, **kwargs)
        except ParameterError as exc:
            return JsonResponse({"error": str(exc)}, status=400)

    return wrapper


def _not_found(what: str) -> JsonResponse:
    return JsonResponse({"error": f"{what} not found."}, status=404)


def _int_param(request: HttpRequest, name: str) -> int:
    raw = _param(request, name)
    try:
        return int(raw)
    except ValueError as exc:
        raise ParameterError(f"Invalid integer for parameter: {name}") from exc


@_lookup_endpoint
def versions(request: HttpRequest) -> JsonResponse:
    return JsonResponse([queries.serialize_version(row) for row in queries.list_versions()], safe=False)


@_lookup_endpoint
def version_detail(request: HttpRequest, version: str) -> JsonResponse:
    row = queries.find_version(version)
    if row is None:
        return _not_found("MFM version")
    return JsonResponse(queries.serialize_version(row))


@_lookup_endpoint
def factions(request: HttpRequest) -> JsonResponse:
    rows = queries.factions_for(_version(request))
    return JsonResponse([queries.serialize_faction(row) for row in rows], safe=False)


@_lookup_endpoint
def faction_detail(request: HttpRequest, name: str) -> JsonResponse:
    row = queries.find_faction(name, _version(request))
    if row is None:
        return _not_found("Faction")
    return JsonResponse(queries.serialize_faction(row))


@_lookup_endpoint
def units(request: HttpRequest) -> JsonResponse:
    rows = queries.units_for(_param(request, "faction"), _version(request))
    return JsonResponse([queries.serialize_unit(row) for row in rows], safe=False)


@_lookup_endpoint
def unit_detail(request: HttpRequest, name: str) -> JsonResponse:
    row = queries.find_unit(name, _param(request, "faction"), _version(request))
    if row is None:
        return _not_found("Unit")
    return JsonResponse(queries.serialize_unit(row))


@_lookup_endpoint
def unit_model_counts(request: HttpRequest, name: str) -> JsonResponse:
    counts = queries.model_counts_for(name, _param(request, "faction"), _version(request))
    return JsonResponse(counts, safe=False)


@_lookup_endpoint
def unit_points(request: HttpRequest, name: str) -> JsonResponse:
    faction = _param(request, "faction")
    model_count = _int_param(request, "modelCount")
    points = queries.unit_points(name, faction, model_count, _version(request))
    if points is None:
        return _not_found("Unit variant")
    return JsonResponse(points, safe=False)


@_lookup_endpoint
def detachments(request: HttpRequest) -> JsonResponse:
    rows = queries.detachments_for(_param(request, "faction"), _version(request))
    return JsonResponse([queries.serialize_detachment(row) for row in rows], safe=False)


@_lookup_endpoint
def detachment_detail(request: HttpRequest, name: str) -> JsonResponse:
    row = queries.find_detachment(name, _param(request, "faction"), _version(request))
    if row is None:
        return _not_found("Detachment")
    return JsonResponse(queries.serialize_detachment(row))


@_lookup_endpoint
def enhancements(request: HttpRequest) -> JsonResponse:
    rows = queries.enhancements_for(_param(request, "detachment"), _param(request, "faction"), _version(request))
    return JsonResponse([queries.serialize_enhancement(row) for row in rows], safe=False)


@_lookup_endpoint
def enhancement_points(request: HttpRequest, name: str) -> JsonResponse:
    detachment = _param(request, "detachment")
    faction = _param(request, "faction")
    points = queries.enhancement_points(name, detachment, faction, _version(request))
    if points is None:
        return _not_found("Enhancement")
    return JsonResponse(points, safe=False)
