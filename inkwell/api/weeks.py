from fastapi import APIRouter

from inkwell.features.weekly.windows import get_week_windower

router = APIRouter(prefix="/v1/weeks", tags=["weeks"])


@router.get("/current")
def current_week():
    return get_week_windower().current_week().to_dict()


@router.get("/last-completed")
def last_completed_week():
    return get_week_windower().last_completed_week().to_dict()
