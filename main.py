# Point d'entrée uvicorn : `uvicorn main:app --reload`
from sunny.main import app  # noqa: F401
