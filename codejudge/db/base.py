"""ORM metadata. Auto-discover feature models for alembic."""

from __future__ import annotations

import importlib
import logging
import os
import pkgutil
from pathlib import Path

from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by every feature's models.py."""
    pass


def discover_feature_models() -> int:
    """Import every ``codejudge.features.*.models`` module so Base.metadata is complete."""
    if os.getenv("SKIP_MODEL_DISCOVERY", "false").lower() == "true":
        logger.info("Skip model discovery (env flag).")
        return 0

    features_dir = Path(__file__).resolve().parent.parent / "features"
    if not features_dir.is_dir():
        logger.warning("No features dir: %s", features_dir)
        return 0

    discovered = 0
    for pkg in pkgutil.walk_packages([str(features_dir)], prefix="codejudge.features."):
        if not pkg.name.endswith(".models"):
            continue
        try:
            importlib.import_module(pkg.name)
            discovered += 1
        except Exception as e:
            logger.error("Model import fail %s: %s", pkg.name, e)
    logger.debug("Discovered %d model modules", discovered)
    return discovered


__all__ = ["Base", "discover_feature_models"]
