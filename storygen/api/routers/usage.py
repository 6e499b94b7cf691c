"""Usage router: token and cost totals."""

from fastapi import APIRouter, Depends

from storygen.api.deps import get_runtime_dep
from storygen.runtime import StorygenRuntime

router = APIRouter()


@router.get("")
async def get_usage(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    return {
        "totals": runtime.usage.get_totals().to_dict(),
        "by_model": runtime.usage.get_breakdown(),
    }


@router.delete("")
async def reset_usage(runtime: StorygenRuntime = Depends(get_runtime_dep)):
    runtime.usage.reset()
    return {"success": True}
