"""Notification application services."""

from .interview_notification_service import InterviewNotificationService

__all__ = ["InterviewNotificationService"]
