from typing import List, Optional

from pydantic import BaseModel


class NotificationContent(BaseModel):
    title: str
    message: str


def _when(days: int, tomorrow: str = "tomorrow") -> str:
    if days == 1:
        return tomorrow
    if days == 7:
        return "in one week"
    return f"in {days} days"


class NotificationMessageBuilder:
    """Titles and bodies for every notification the engine schedules."""

    @staticmethod
    def deadline_reminder(title: str, company: str, days: int) -> NotificationContent:
        heading = "Tomorrow" if days == 1 else ("In One Week" if days == 7 else f"In {days} Days")
        return NotificationContent(
            title=f"Application Deadline {heading}",
            message=f'The application deadline for "{title}" at {company} is {_when(days)}.',
        )

    @staticmethod
    def interview_reminder(title: str, company: str, hours: int, for_candidate: bool) -> NotificationContent:
        heading = "In One Hour" if hours == 1 else ("Tomorrow" if hours == 24 else f"In {hours} Hours")
        when = "in one hour" if hours == 1 else ("tomorrow" if hours == 24 else f"in {hours} hours")
        if for_candidate:
            message = f'Your interview for "{title}" at {company} is {when}.'
        else:
            message = f'Your interview with the candidate for "{title}" is {when}.'
        return NotificationContent(title=f"Interview {heading}", message=message)

    @staticmethod
    def interview_scheduled(title: str, company: str, scheduled_at: str, for_candidate: bool) -> NotificationContent:
        if for_candidate:
            message = f'An interview for "{title}" at {company} has been scheduled for {scheduled_at}.'
        else:
            message = f'You are interviewing a candidate for "{title}" on {scheduled_at}.'
        return NotificationContent(title="Interview Scheduled", message=message)

    @staticmethod
    def interview_cancelled(title: str, company: str) -> NotificationContent:
        return NotificationContent(
            title="Interview Cancelled",
            message=f'Your interview for "{title}" at {company} has been cancelled.',
        )

    @staticmethod
    def approval_requested(candidate_name: str, title: str, company: str, priority: str, window: str) -> NotificationContent:
        return NotificationContent(
            title=f"New Application for Review ({priority})",
            message=(
                f'{candidate_name} applied for "{title}" at {company}. '
                f"Expected response within {window}."
            ),
        )

    @staticmethod
    def approval_pending(title: str, company: str) -> NotificationContent:
        return NotificationContent(
            title="Pending Application Approval",
            message=f'You have a pending application for "{title}" at {company} that requires your review.',
        )

    @staticmethod
    def approval_decided(title: str, company: str, approved: bool, comments: Optional[str]) -> NotificationContent:
        if approved:
            return NotificationContent(
                title="Application Approved",
                message=f'Your application for "{title}" at {company} was approved and forwarded to the employer.',
            )
        message = f'Your application for "{title}" at {company} was not approved.'
        if comments:
            message += f" Reviewer comments: {comments}"
        return NotificationContent(title="Application Not Approved", message=message)

    @staticmethod
    def feedback_request(candidate_name: str, title: str) -> NotificationContent:
        return NotificationContent(
            title="Feedback Request",
            message=f'Please provide feedback for {candidate_name} who completed "{title}".',
        )

    @staticmethod
    def recommendation(title: str, company: str, score: int, reasons: List[str]) -> NotificationContent:
        message = f'"{title}" at {company} is a {score}% match for your profile.'
        if reasons:
            message += " " + "; ".join(reasons[:3]) + "."
        return NotificationContent(title="New Opportunity Match", message=message)

    @staticmethod
    def cross_group(title: str, company: str) -> NotificationContent:
        return NotificationContent(
            title="Opportunity Outside Your Group",
            message=f'"{title}" at {company} was posted for another group and may interest you.',
        )

    @staticmethod
    def offer_extended(title: str, company: str, deadline: str) -> NotificationContent:
        return NotificationContent(
            title="Offer Received",
            message=f'You received an offer for "{title}" at {company}. Please respond by {deadline}.',
        )

    @staticmethod
    def offer_response(candidate_name: str, title: str, accepted: bool) -> NotificationContent:
        verb = "accepted" if accepted else "declined"
        return NotificationContent(
            title=f"Offer {verb.capitalize()}",
            message=f'{candidate_name} {verb} the offer for "{title}".',
        )

    @staticmethod
    def application_outcome(title: str, company: str, status_label: str) -> NotificationContent:
        return NotificationContent(
            title="Application Update",
            message=f'Your application for "{title}" at {company} is now: {status_label}.',
        )

    @staticmethod
    def build_link(base_url: str, subject_type: str, subject_id) -> str:
        return f"{base_url.rstrip('/')}/{subject_type.replace('_', '-')}s/{subject_id}"

