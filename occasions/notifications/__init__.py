from occasions.notifications.processor import (
    ProcessResult,
    TemplateNotFound,
    TemplateProcessor,
    UserNotFound,
    process_templates,
    test_send_template,
)
from occasions.notifications.reminders import (
    ReminderResult,
    ReminderSweeper,
    process_reminder_notifications,
)

__all__ = [
    "ProcessResult",
    "ReminderResult",
    "ReminderSweeper",
    "TemplateNotFound",
    "TemplateProcessor",
    "UserNotFound",
    "process_reminder_notifications",
    "process_templates",
    "test_send_template",
]
