"""
/api/chat endpoint
"""
from fastapi import APIRouter

from krishi.llm.advisor import advise
from krishi.schemas import ChatRequest, ChatResponse

router = APIRouter(tags=["chat"])

@router.post("/chat", response_model=ChatResponse)
async def chat(req: ChatRequest):
    """
    Farming advice from the language model, always returned as the four
    advice fields even when the model's reply had to be salvaged.
    """
    result = await advise(req)
    return ChatResponse(data=result.advice)
