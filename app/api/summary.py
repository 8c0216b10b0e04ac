"""
app/api/summary.py

Purpose: On-demand spending summary

GET /summary/{phone}?period=week|month|ytd
- Validates phone and period
- Builds the summary and sends it to the user over WhatsApp
- Returns the narrative, the spending data and the Twilio message SID
"""

from fastapi import APIRouter, Query

from app.core.exceptions import ReimburziError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger, LogContext
from app.schemas.summary import SummaryResponse
from app.services.summary_service import get_summary_generator
from app.services.twilio_service import twilio_service
from app.services.user_service import get_user_by_phone
from utils.validation_utils import SUMMARY_PERIODS, validate_period, validate_phone_number

logger = get_logger(__name__)
router = APIRouter()


@router.get("/summary/{phone}", response_model=SummaryResponse)
async def get_summary(phone: str, period: str = Query("week")):
    if not validate_phone_number(phone):
        raise ValidationError("Invalid phone number format. Must start with +")

    if not validate_period(period):
        raise ValidationError(f"Invalid period. Must be one of: {', '.join(SUMMARY_PERIODS)}")

    user = await get_user_by_phone(phone)
    if not user:
        raise ResourceNotFoundError("User not found")

    with LogContext(phone=phone, user_id=user["id"], period=period):
        try:
            summary = await get_summary_generator().summarize(user["id"], period)
            result = await twilio_service.send_message(to_phone=phone, message=summary.narrative)
        except Exception as e:
            logger.error(f"Error generating summary: {e}", exc_info=True)
            details = e.message if isinstance(e, ReimburziError) else str(e)
            raise ReimburziError(
                "Failed to generate summary",
                code="SUMMARY_FAILED",
                status_code=500,
                details=details,
            ) from e

    return SummaryResponse(
        success=True,
        summary=summary.narrative,
        spendingData=summary.to_spending_data(),
        messageSid=result.get("message_sid"),
    )
