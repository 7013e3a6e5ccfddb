"""
Request shape of a dedicated (per-certificate) CloudFront distribution.

Layout:

  origins
    <stored_name>         application origin, forwarded as plain HTTP
    <stored_name>-errors  static bucket holding the custom error pages

  cache behaviours
    default               → app origin, whitelisted headers/cookies, cached GET/HEAD/OPTIONS
    <no_cache pattern>    → app origin, all headers/cookies, never cached
    <errors path>/*       → error origin, nothing forwarded, never cached

  custom error responses  502/503/504 (+403 optionally) → <errors path>/<code>.html

The distribution starts without aliases; hostnames are bound afterwards with
the alias allocator using the distribution as explicit target.
"""

from __future__ import annotations

import uuid
from typing import Any

from cdn_domains.config import CloudFrontSettings

_ALL_METHODS = ["GET", "HEAD", "OPTIONS", "PUT", "PATCH", "POST", "DELETE"]
_CACHED_METHODS = ["GET", "HEAD", "OPTIONS"]

# The origin is always reached over HTTP; the app reads the viewer scheme
# from CloudFront-Forwarded-Proto.
_DEFAULT_FORWARDED_HEADERS = ["Host", "Authorization", "CloudFront-Forwarded-Proto", "Accept"]

_ERROR_STATUS_CODES = (502, 503, 504)


def _quantified(items: list[Any]) -> dict[str, Any]:
    if not items:
        return {"Quantity": 0}
    return {"Quantity": len(items), "Items": items}


def _allowed_methods(cached: list[str]) -> dict[str, Any]:
    return {**_quantified(_ALL_METHODS), "CachedMethods": _quantified(cached)}


def _uncached_ttls() -> dict[str, int]:
    return {"MinTTL": 0, "DefaultTTL": 0, "MaxTTL": 0}


def _app_origin(settings: CloudFrontSettings, origin_id: str) -> dict[str, Any]:
    return {
        "Id": origin_id,
        "DomainName": settings.origin_domain,
        "OriginPath": "",
        "CustomHeaders": {"Quantity": 0},
        "CustomOriginConfig": {
            "HTTPPort": 80,
            "HTTPSPort": 443,
            "OriginProtocolPolicy": "http-only",
        },
    }


def _errors_origin(settings: CloudFrontSettings, origin_id: str) -> dict[str, Any]:
    return {
        "Id": origin_id,
        "DomainName": settings.custom_errors_domain,
        "OriginPath": "",
        "CustomHeaders": {"Quantity": 0},
        "S3OriginConfig": {"OriginAccessIdentity": ""},
    }


def default_cache_behavior(settings: CloudFrontSettings, origin_id: str) -> dict[str, Any]:
    return {
        "TargetOriginId": origin_id,
        "ForwardedValues": {
            "QueryString": True,
            "Cookies": {
                "Forward": "whitelist",
                "WhitelistedNames": _quantified([f"{settings.cookie_prefix}_*"]),
            },
            "Headers": _quantified(list(_DEFAULT_FORWARDED_HEADERS)),
        },
        "TrustedSigners": {"Enabled": False, "Quantity": 0},
        "ViewerProtocolPolicy": "allow-all",
        "MinTTL": 0,
        "AllowedMethods": _allowed_methods(_CACHED_METHODS),
        "SmoothStreaming": False,
        "Compress": True,
    }


def passthrough_cache_behavior(settings: CloudFrontSettings, origin_id: str) -> dict[str, Any]:
    """Dynamic/authenticated routes: forward everything, cache nothing."""
    return {
        "PathPattern": settings.no_cache_path_pattern,
        "TargetOriginId": origin_id,
        "ForwardedValues": {
            "QueryString": True,
            "Cookies": {"Forward": "all"},
            "Headers": _quantified(["*"]),
        },
        "TrustedSigners": {"Enabled": False, "Quantity": 0},
        "ViewerProtocolPolicy": "allow-all",
        **_uncached_ttls(),
        "AllowedMethods": _allowed_methods(["GET", "HEAD"]),
        "SmoothStreaming": False,
        "Compress": False,
    }


def custom_errors_cache_behavior(settings: CloudFrontSettings, origin_id: str) -> dict[str, Any]:
    return {
        "PathPattern": f"{settings.custom_errors_path}/*",
        "TargetOriginId": origin_id,
        "ForwardedValues": {
            "QueryString": False,
            "Cookies": {"Forward": "none"},
            "Headers": {"Quantity": 0},
        },
        "TrustedSigners": {"Enabled": False, "Quantity": 0},
        "ViewerProtocolPolicy": "allow-all",
        **_uncached_ttls(),
        "AllowedMethods": {**_quantified(["GET", "HEAD"]), "CachedMethods": _quantified(["GET", "HEAD"])},
        "SmoothStreaming": False,
        "Compress": False,
    }


def custom_error_responses(settings: CloudFrontSettings) -> dict[str, Any]:
    codes = list(_ERROR_STATUS_CODES)
    if settings.serve_forbidden_error_page:
        codes.insert(0, 403)
    return _quantified(
        [
            {
                "ErrorCode": code,
                "ResponsePagePath": f"{settings.custom_errors_path}/{code}.html",
                "ResponseCode": str(code),
                "ErrorCachingMinTTL": 0,
            }
            for code in codes
        ]
    )


def viewer_certificate(settings: CloudFrontSettings, key_material_id: str) -> dict[str, Any]:
    return {
        "IAMCertificateId": key_material_id,
        "SSLSupportMethod": "sni-only",
        "MinimumProtocolVersion": settings.minimum_protocol_version,
        "CloudFrontDefaultCertificate": False,
    }


def build_dedicated_distribution_config(
    settings: CloudFrontSettings,
    stored_name: str,
    key_material_id: str,
    caller_reference: str | None = None,
) -> dict[str, Any]:
    """Complete DistributionConfig for a distribution serving one uploaded certificate."""
    app_origin_id = stored_name
    errors_origin_id = f"{stored_name}-errors"

    return {
        "CallerReference": caller_reference or uuid.uuid4().hex,
        "Comment": stored_name,
        "Aliases": {"Quantity": 0},
        "DefaultRootObject": "",
        "Origins": _quantified(
            [
                _app_origin(settings, app_origin_id),
                _errors_origin(settings, errors_origin_id),
            ]
        ),
        "DefaultCacheBehavior": default_cache_behavior(settings, app_origin_id),
        "CacheBehaviors": _quantified(
            [
                passthrough_cache_behavior(settings, app_origin_id),
                custom_errors_cache_behavior(settings, errors_origin_id),
            ]
        ),
        "CustomErrorResponses": custom_error_responses(settings),
        "Logging": {
            "Enabled": bool(settings.log_bucket),
            "IncludeCookies": False,
            "Bucket": settings.log_bucket,
            "Prefix": f"{stored_name}/",
        },
        "PriceClass": settings.price_class,
        "Enabled": True,
        "ViewerCertificate": viewer_certificate(settings, key_material_id),
        "HttpVersion": "http2",
    }
