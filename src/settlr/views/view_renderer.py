"""HTML page rendering for the Settlr dashboard."""

import os
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..models.document import DealFile, GeneratedDocument
from ..models.enums import DocumentType, EscrowStatus
from ..models.escrow import DashboardStats, EscrowContract
from ..parsers.base import format_file_size


DOCUMENT_TAB_LABELS = {
    DocumentType.SUMMARY.value: "Summary",
    DocumentType.PDF_CONTRACT.value: "Legal Contract",
    DocumentType.SOLIDITY.value: "Smart Contract",
    DocumentType.DEPLOYMENT_SCRIPT.value: "Deployment Script",
}

STATUS_BADGES = {
    EscrowStatus.PENDING.value: "badge-pending",
    EscrowStatus.ACTIVE.value: "badge-active",
    EscrowStatus.COMPLETED.value: "badge-completed",
    EscrowStatus.DISPUTED.value: "badge-disputed",
    EscrowStatus.CANCELLED.value: "badge-cancelled",
}


class ViewRenderer:
    """
    Renders the dashboard pages with Jinja2 templates.
    """

    def __init__(self, template_dir: Optional[str] = None):
        """
        Initialize the view renderer.

        Args:
            template_dir: Directory containing Jinja2 templates.
                         Defaults to the templates shipped with the package.
        """
        if template_dir is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.dirname(__file__)),
                "templates"
            )

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(['html', 'xml'])
        )
        self.env.filters["filesize"] = format_file_size
        self.env.filters["datetime"] = _format_datetime

    def render_home(self, user_email: Optional[str] = None) -> str:
        template = self.env.get_template("home.html")
        return template.render(user_email=user_email)

    def render_login(
        self,
        from_path: Optional[str] = None,
        error: Optional[str] = None,
        mode: str = "login",
    ) -> str:
        """
        Render the sign-in page.

        Args:
            from_path: Page to return to after signing in.
            error: Message shown above the form.
            mode: ``login`` or ``signup``.
        """
        template = self.env.get_template("login.html")
        return template.render(
            from_path=from_path if _is_local_path(from_path) else "/dashboard",
            error=error,
            mode=mode,
        )

    def render_dashboard(
        self,
        user_email: str,
        stats: DashboardStats,
        escrows: List[EscrowContract],
        search: str = "",
        status: str = "",
    ) -> str:
        template = self.env.get_template("dashboard.html")
        return template.render(
            user_email=user_email,
            stats=stats,
            escrows=escrows,
            search=search,
            status=status,
            statuses=[s.value for s in EscrowStatus],
            badges=STATUS_BADGES,
        )

    def render_escrow_detail(
        self,
        escrow: EscrowContract,
        user_email: str,
        documents: Dict[str, GeneratedDocument],
        files: List[DealFile],
        missing_fields: List[str],
    ) -> str:
        """
        Render an escrow with its document tabs, missing-info panel
        and signature form.

        Args:
            escrow: The escrow deal.
            user_email: Signed-in user, used to find their participant entry.
            documents: Latest generated document per DocumentType value.
            files: Uploaded deal files.
            missing_fields: Required deal fields that are still empty.
        """
        me = next((p for p in escrow.participants if p.email == user_email), None)
        template = self.env.get_template("escrow_detail.html")
        return template.render(
            escrow=escrow,
            user_email=user_email,
            me=me,
            documents=documents,
            tabs=DOCUMENT_TAB_LABELS,
            files=files,
            missing_fields=missing_fields,
            badges=STATUS_BADGES,
        )


def _format_datetime(value) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


def _is_local_path(path: Optional[str]) -> bool:
    # Only same-site paths; "//host" would leave the site
    return bool(path) and path.startswith("/") and not path.startswith("//")
