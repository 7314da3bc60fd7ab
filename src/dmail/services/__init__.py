from .doctor import run_doctor_checks
from .exporter import export_views
from .mailbox import MailboxClient

__all__ = ["MailboxClient", "export_views", "run_doctor_checks"]
