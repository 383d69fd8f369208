"""
POST /validate
POST /verify
Static checks: syntax / markup validation of one file, and confidence-scored
verification of a candidate fix.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from autofix.models.verification import SyntaxCheck, VerificationOptions, VerificationResult
from autofix.validation.validator import validate_jsx, validate_syntax, verify_fix

router = APIRouter()


class ValidateRequest(BaseModel):
    code: str


class ValidateResponse(BaseModel):
    valid: bool
    syntax: SyntaxCheck
    jsx: SyntaxCheck


@router.post("/validate", response_model=ValidateResponse)
async def validate_code(request: ValidateRequest):
    syntax = validate_syntax(request.code)
    jsx = validate_jsx(request.code)
    return ValidateResponse(valid=syntax.valid and jsx.valid, syntax=syntax, jsx=jsx)


@router.post("/verify", response_model=VerificationResult)
async def verify_candidate(options: VerificationOptions):
    return verify_fix(options)
