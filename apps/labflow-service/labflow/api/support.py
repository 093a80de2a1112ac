"""
Support and build information endpoints.

Provides build metadata and the feature flag snapshot the client uses to
hide disabled screens.
"""
from __future__ import annotations

import os

from fastapi import APIRouter

from labflow.utils.feature_flags import get_feature_flags

router = APIRouter(tags=["support"])


@router.get("/build-info")
def get_build_info():
    """Return build and deployment information for the running service."""
    build_sha = os.getenv("BUILD_SHA")
    build_timestamp = os.getenv("BUILD_TIMESTAMP")
    image_tag = os.getenv("IMAGE_TAG")
    version = os.getenv("VERSION", "unknown")

    return {
        "build_sha": build_sha if build_sha else None,
        "build_timestamp": build_timestamp if build_timestamp else None,
        "image_tag": image_tag if image_tag else None,
        "service_name": "labflow-service",
        "version": version,
    }


@router.get("/feature-flags")
def read_feature_flags():
    return dict(get_feature_flags())
