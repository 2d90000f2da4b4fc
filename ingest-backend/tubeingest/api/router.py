from fastapi import APIRouter
from tubeingest.api.routes.health import router as health
from tubeingest.api.routes.channels import router as channels
from tubeingest.api.routes.cron import router as cron
from tubeingest.api.routes.submissions import router as submissions

router = APIRouter()
router.include_router(health)
router.include_router(channels)
router.include_router(cron)
router.include_router(submissions)
