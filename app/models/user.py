"""
app/models/user.py

Purpose: User document model

- Phone number (unique) and opaque id
- Name and email collected during onboarding
- Organization tag and timestamps
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional


def build_user_document(
    phone: str,
    name: str,
    email: Optional[str],
    company_id: str,
) -> Dict[str, Any]:
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "phone": phone,
        "name": name,
        "email": email,
        "company_id": company_id,
        "created_at": now,
        "updated_at": now,
    }
