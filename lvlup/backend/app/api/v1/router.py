from fastapi import APIRouter
from app.api.v1 import (
    departments,
    employees,
    feedback,
    goals,
    job_positions,
    notifications,
    reviews,
    subscription,
    tenants,
    users,
)

api_router = APIRouter()

api_router.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(departments.router, prefix="/departments", tags=["departments"])
api_router.include_router(job_positions.router, prefix="/job-positions", tags=["job-positions"])
api_router.include_router(goals.router, prefix="/goals", tags=["goals"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(subscription.router, prefix="/subscription", tags=["subscription"])
