from fastapi import APIRouter
from freetime.api.api_v1.endpoints import groups, blocks, free_slots, stream, identity

router = APIRouter()

# Include all routers
router.include_router(identity.router, prefix="/identity", tags=["Identity"])
router.include_router(groups.router, prefix="/groups", tags=["Groups"])
router.include_router(blocks.router, prefix="/groups", tags=["Busy Blocks"])
router.include_router(free_slots.router, prefix="/groups", tags=["Free Slots"])
router.include_router(stream.router, prefix="/groups", tags=["Updates"])
