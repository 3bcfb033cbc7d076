# -*- coding: utf-8 -*-
from fastapi import APIRouter

from api.dependencies import registry
from api.schemas import ConfigResponse

router = APIRouter()


@router.get(
    "/config",
    response_model=ConfigResponse,
    summary="현재 파라미터 조회",
    description="Returns the fusion parameters the service was started with "
    "(capacity, prior defaults, decay constant, source weights, outlier threshold, bus bonus). "
    "Parameters are read once from the environment and cannot be changed at runtime.",
    response_description="현재 설정된 파라미터 값",
)
async def get_config():
    """현재 파라미터 값을 반환한다."""
    return ConfigResponse(**registry.get_config().to_dict())
