"""
app/api/routers/descriptions.py

App description generation endpoint.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.validation import DescriptionRequest, DescriptionResponse
from app.services.validation_service import get_description_generator
from category_oracle.describer import AppDescriptionGenerator
from category_oracle.oracle import describe_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["descriptions"])


@router.post("/descriptions", response_model=DescriptionResponse)
def generate_description(
    payload: DescriptionRequest,
    generator: AppDescriptionGenerator = Depends(get_description_generator),
) -> DescriptionResponse:
    """
    Generate a product description for one app name and category.
    """

    try:
        result = generator.generate(app_name=payload.app_name, category=payload.category)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Description generation for '%s' failed: %s", payload.app_name, describe_error(exc))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Description could not be generated: {describe_error(exc)}",
        ) from exc
    return DescriptionResponse(description=result.description)
