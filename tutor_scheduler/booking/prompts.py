from __future__ import annotations

from enum import Enum
from typing import Optional

from tutor_scheduler.models.session import BookingInfo
from tutor_scheduler.models.tutor import Tutor

from .parsers import COURSE_CODES


class PromptKind(str, Enum):
    NAME_EMAIL = "NAME_EMAIL"
    NAME_EMAIL_INVALID = "NAME_EMAIL_INVALID"
    CCSF_EMAIL = "CCSF_EMAIL"
    CCSF_EMAIL_INVALID = "CCSF_EMAIL_INVALID"
    STUDENT_ID = "STUDENT_ID"
    STUDENT_ID_INVALID = "STUDENT_ID_INVALID"
    ALLOW_OTHERS = "ALLOW_OTHERS"
    ALLOW_OTHERS_INVALID = "ALLOW_OTHERS_INVALID"
    CLASSES = "CLASSES"
    CLASSES_INVALID = "CLASSES_INVALID"
    SPECIFIC_HELP = "SPECIFIC_HELP"
    SPECIFIC_HELP_INVALID = "SPECIFIC_HELP_INVALID"
    ADDITIONAL_NOTES = "ADDITIONAL_NOTES"
    ADDITIONAL_NOTES_INVALID = "ADDITIONAL_NOTES_INVALID"
    COMPLETE = "COMPLETE"


_STUDENT_ID_FORMAT = "**Format:** Letter(s) followed by digits (e.g., S12345678)"

_TEXT = {
    PromptKind.NAME_EMAIL: (
        "**Step 1/7:** Please provide:\n"
        "- Your name\n"
        "- Your school email (ends with @mail.ccsf.edu)\n\n"
        'Format: "Name: [Your Name], Email: [Your @mail.ccsf.edu Email]"'
    ),
    PromptKind.NAME_EMAIL_INVALID: (
        "I need both your name and school email. Please provide them in this format:\n\n"
        "Name: [Your Name], Email: [Your @mail.ccsf.edu Email]"
    ),
    PromptKind.CCSF_EMAIL: (
        "Thanks! **Step 2/7:** What is your @mail.ccsf.edu email address? "
        "(Please include this, even if it's the same as the email above)"
    ),
    PromptKind.CCSF_EMAIL_INVALID: "Please provide your @mail.ccsf.edu email address.",
    PromptKind.STUDENT_ID: (
        "**Step 3/7:** What is your CCSF student ID number?\n\n"
        f"{_STUDENT_ID_FORMAT}\n\n"
        'You can skip this by typing "skip"'
    ),
    PromptKind.STUDENT_ID_INVALID: (
        "❌ Invalid student ID format. Please enter your CCSF student ID in the correct format.\n\n"
        f"{_STUDENT_ID_FORMAT}\n\n"
        "**Examples:**\n• S12345678\n• A98765432\n• CS123456\n\n"
        'Please try again, or type "skip" to skip this step.'
    ),
    PromptKind.ALLOW_OTHERS: (
        "**Step 4/7:** Are you okay with other students joining during your session?\n\n"
        'Reply with "yes" or "no"'
    ),
    PromptKind.ALLOW_OTHERS_INVALID: 'Please reply with "yes" or "no": are other students welcome to join?',
    PromptKind.CLASSES: (
        "**Step 5/7:** What classes are you seeking help for? "
        'Please list the course codes (e.g., "110A, 131B, MATH 108")\n\n'
        f"Available: {', '.join(COURSE_CODES)}"
    ),
    PromptKind.CLASSES_INVALID: (
        "Please list at least one class (course codes like 110A or MATH 108, or \"Other\")."
    ),
    PromptKind.SPECIFIC_HELP: (
        "**Step 6/7:** What specifically do you need help with? "
        '(e.g., "A programming assignment on nested loops")\n\n'
        "Please don't copy/paste code here."
    ),
    PromptKind.SPECIFIC_HELP_INVALID: "Please describe what you'd like help with in a sentence or two.",
    PromptKind.ADDITIONAL_NOTES: (
        '**Step 7/7:** Anything else the tutor should know? (Type "no" or "skip" if nothing)'
    ),
    PromptKind.ADDITIONAL_NOTES_INVALID: 'Anything else the tutor should know? Type "no" if nothing.',
    PromptKind.COMPLETE: "✅ **Booking Complete!**",
}


def prompt_text(kind: PromptKind, booking: Optional[BookingInfo] = None) -> str:
    text = _TEXT[kind]
    if kind == PromptKind.CCSF_EMAIL and booking is not None and booking.ccsf_email:
        text = (
            f"Thanks! **Step 2/7:** Is **{booking.ccsf_email}** your @mail.ccsf.edu email address? "
            'Reply "same" to keep it, or type a different @mail.ccsf.edu address.'
        )
    return text


def booking_intro(tutor: Tutor, booking: BookingInfo) -> str:
    slot = booking.slot
    return (
        f"Great! To book a session with {tutor.name} on {slot.day} at {slot.time} "
        f"({slot.mode.value}), I'll need some information:\n\n"
        + prompt_text(PromptKind.NAME_EMAIL, booking)
    )
