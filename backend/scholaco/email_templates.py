"""HTML bodies and subjects for Scholaco's transactional emails.

All rendering happens locally; the Brevo API only ever receives the final
subject and HTML.  User-supplied values are HTML-escaped.
"""

from datetime import date
from html import escape
from typing import Optional, Tuple

from scholaco import config

_HEADER_STYLE = (
    "background: linear-gradient(135deg, #800020 0%, #a91e43 100%); "
    "padding: 30px; text-align: center; border-radius: 10px 10px 0 0;"
)
_BODY_STYLE = "background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px;"
_BUTTON_STYLE = (
    "background: #800020; color: white; padding: 12px 30px; text-decoration: none; "
    "border-radius: 25px; display: inline-block;"
)


def _plural_days(days: int) -> str:
    return f"{days} day{'' if days == 1 else 's'}"


def _long_date(value: date) -> str:
    """``Monday, October 19, 2026``"""
    return f"{value.strftime('%A')}, {value.strftime('%B')} {value.day}, {value.year}"


def _layout(title: str, content: str, button_label: str, button_path: str = "") -> str:
    link = f"{config.APP_BASE_URL}{button_path}"
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <div style="{_HEADER_STYLE}">
        <h1 style="color: white; margin: 0;">{title}</h1>
      </div>
      <div style="{_BODY_STYLE}">
        {content}
        <div style="text-align: center; margin: 30px 0;">
          <a href="{link}" style="{_BUTTON_STYLE}">{button_label}</a>
        </div>
      </div>
    </div>
    """


def welcome(user_name: str) -> Tuple[str, str]:
    """Subject and HTML for a newly registered user."""
    subject = "Welcome to Scholaco! 🎓"
    content = f"""
        <h2>Hi {escape(user_name)}!</h2>
        <p>Thank you for joining Scholaco. We're excited to help you track your scholarship applications!</p>
        <p><strong>What you can do:</strong></p>
        <ul>
          <li>Track all your scholarship applications in one place</li>
          <li>Never miss a deadline with smart reminders</li>
          <li>Monitor your progress with beautiful analytics</li>
        </ul>
        <p>Best of luck with your applications!</p>
    """
    return subject, _layout("Welcome to Scholaco!", content, "Get Started")


def deadline_reminder(
    app_name: str,
    organization: Optional[str],
    deadline: date,
    days_left: int,
) -> Tuple[str, str]:
    """Subject and HTML reminding the user of an approaching deadline."""
    remaining = _plural_days(days_left)
    subject = f"⏰ Reminder: {app_name} deadline in {remaining}"
    content = f"""
        <h2>Don't forget!</h2>
        <div style="background: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin: 20px 0;">
          <h3 style="margin-top: 0;">{escape(app_name)}</h3>
          <p><strong>Organization:</strong> {escape(organization or "No organization")}</p>
          <p><strong>Deadline:</strong> {_long_date(deadline)}</p>
          <p><strong>Time Remaining:</strong> {remaining}</p>
        </div>
        <p><strong>Action items:</strong></p>
        <ul>
          <li>Complete all required documents</li>
          <li>Review your application</li>
          <li>Submit before the deadline</li>
        </ul>
        <p>Good luck! 🚀</p>
    """
    return subject, _layout("⏰ Deadline Reminder", content, "View in Scholaco", "/dashboard")


def application_submitted(app_name: str) -> Tuple[str, str]:
    """Subject and HTML confirming an application was marked as submitted."""
    subject = f"✅ Application Submitted: {app_name}"
    content = f"""
        <h2>Great job!</h2>
        <p>Your application for <strong>{escape(app_name)}</strong> has been marked as submitted.</p>
        <p>We'll keep tracking it for you. You can view all your applications in your Scholaco dashboard.</p>
        <p>Keep up the great work! 🎉</p>
    """
    return subject, _layout("✅ Application Submitted!", content, "View Dashboard", "/dashboard")
