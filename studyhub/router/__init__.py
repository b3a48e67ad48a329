from studyhub.router.api.quizzes import router as quizzes_router
from studyhub.router.api.labs import router as labs_router
from studyhub.router.api.users import router as users_router
__all__ = [
    "quizzes_router",
    "labs_router",
    "users_router",
]
