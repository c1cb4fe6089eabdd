"""
/api/feedback endpoint (validation only; nothing is stored)
"""
import logging

from fastapi import APIRouter

from krishi.schemas import FeedbackRequest, FeedbackResponse

log = logging.getLogger("krishimitra.feedback")

router = APIRouter(tags=["feedback"])

@router.post("/feedback", response_model=FeedbackResponse)
async def feedback(req: FeedbackRequest):
    log.info("Feedback received: type=%s rating=%s length=%d", req.type, req.rating, len(req.message))
    return FeedbackResponse(message="Feedback received", feedbackType=req.type)
