from fastapi import APIRouter
from hrms.routers import auth, leave, notifications

# Centralized API router hub; main.py only imports this module.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(notifications.router, tags=["Notifications"])
