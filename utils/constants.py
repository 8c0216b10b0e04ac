"""
utils/constants.py

Purpose: Centralized static content

- All user-facing WhatsApp messages
- Reusable constants

(Prevents hardcoding across the codebase)
"""

BOT_NAME = "Reimburzi"

# ============================================================
# ONBOARDING
# ============================================================

WELCOME_NEW_USER_MESSAGE = f"""Welcome to {BOT_NAME}! 👋

Let's get you set up. What's your name?"""

WELCOME_BACK_MESSAGE = """Welcome back, {name}! 👋

You can send me a receipt to track your expenses."""

ASK_NAME_AGAIN_MESSAGE = "Please reply with your name to continue:"

ASK_EMAIL_MESSAGE = "Thanks {name}! What's your email address?"

INVALID_EMAIL_MESSAGE = "That doesn't look like a valid email address. Please try again:"

ONBOARDING_COMPLETE_MESSAGE = """Great! You're all set up, {name}! 🎉

You can now send me receipts to track your expenses. Just take a photo of your receipt and send it to me."""

JOIN_FIRST_MESSAGE = "Welcome! To get started, please send *join* to begin setting up your account."

# ============================================================
# RECEIPTS
# ============================================================

RECEIPT_SAVED_MESSAGE = """✅ Receipt saved: *{merchant}*, {amount:.2f} {currency} ({category})

Want a summary of this week? Reply *summary*."""

RECEIPT_FAILED_MESSAGE = "❌ Sorry, I couldn't process your receipt. Please try again."

# ============================================================
# SUMMARIES & HELP
# ============================================================

NO_EXPENSES_MESSAGE = "You haven't recorded any expenses in the {period_label}. Send me a receipt to get started! 📝"

SUMMARY_FAILED_MESSAGE = "❌ Sorry, I couldn't prepare your summary right now. Please try again later."

DEFAULT_INSIGHT = "Keep snapping your receipts and I'll keep the numbers tidy for you."

SUMMARY_CLOSING = "Keep it up! 💪📊"

HELP_MESSAGE = """Hi {name}! 👋

I can help you track your expenses. Just send me a photo of your receipt, or type *summary* to see your spending overview.

You can also try:
- *summary month* for monthly view
- *summary year* for year-to-date view"""

GENERIC_ERROR_MESSAGE = "❌ Something went wrong on our side. Please try again in a moment."

TOP_CATEGORY_COUNT = 3
