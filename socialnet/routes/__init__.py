from fastapi import APIRouter
from .users import router as users_router
from .thoughts import router as thoughts_router

router = APIRouter()
router.include_router(users_router, prefix='/users', tags=['users'])
router.include_router(thoughts_router, prefix='/thoughts', tags=['thoughts'])
