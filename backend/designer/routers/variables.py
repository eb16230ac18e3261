"""
Variable discovery endpoint.
"""

from fastapi import APIRouter

from designer.models.api import ContentRequest, VariablesResponse
from designer.services.variables import extract_variables

router = APIRouter()


@router.post("", response_model=VariablesResponse)
async def list_variables(request: ContentRequest):
    """Sorted unique variable names used anywhere in a document."""
    return VariablesResponse(variables=extract_variables(request.content or {}))
