"""
Typed failures for the family workflows.
Each error is an HTTPException so routes and services can raise it directly;
the code is stable for clients, the detail is the user-visible message.
"""

from fastapi import HTTPException, status


class KynError(HTTPException):
    code = "operation_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong. Please try again."

    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.message, headers=headers)


class NotAuthenticated(KynError):
    code = "not_authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"

    def __init__(self, detail: str = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ProfileNotFound(KynError):
    code = "profile_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Profile not found. Please complete onboarding."


class UserNotFound(KynError):
    code = "user_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "No user found with that email. They must complete onboarding first."


class FamilyNotFound(KynError):
    code = "family_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Family not found"


class NotFamilyMember(KynError):
    code = "not_family_member"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Family not found or you are not a member"


class InsufficientFamilyRole(KynError):
    code = "insufficient_family_role"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You must be a family admin to perform this action"


class NoFamilySelected(KynError):
    code = "no_family_selected"
    status_code = status.HTTP_409_CONFLICT
    message = "You are not in a family"


class AlreadyCreatedFamily(KynError):
    code = "already_created_family"
    status_code = status.HTTP_409_CONFLICT
    message = "You can only create one family"


class DuplicateFamilyName(KynError):
    code = "duplicate_family_name"
    status_code = status.HTTP_409_CONFLICT
    message = "You already have a family with this name"


class AlreadyMember(KynError):
    code = "already_member"
    status_code = status.HTTP_409_CONFLICT
    message = "You are already a member of this family"


class MultipleFamiliesFound(KynError):
    code = "multiple_families_found"
    status_code = status.HTTP_409_CONFLICT
    message = "Multiple families found for this invite. Please contact support."


class InvalidInvite(KynError):
    code = "invalid_invite"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Invalid invite. Please check your invite link or password."


class InvalidOrExpiredInvite(KynError):
    code = "invalid_or_expired_invite"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Invalid or expired invite link."


class InviteExpired(KynError):
    code = "invite_expired"
    status_code = status.HTTP_410_GONE
    message = "Invite link has expired."


class InvalidInviteLink(KynError):
    code = "invalid_invite_link"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invite link is malformed"


class RecipientNotMember(KynError):
    code = "recipient_not_member"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Recipient is not a member of this family"


class PostNotFound(KynError):
    code = "post_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Post not found"


class MemberNotFound(KynError):
    code = "member_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Family member not found"


class InvalidTreeParent(KynError):
    code = "invalid_tree_parent"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Parent must be another member of the same family and must not create a cycle"


class AssigneeNotMember(KynError):
    code = "assignee_not_member"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Tasks can only be assigned to members of this family"


class TaskNotFound(KynError):
    code = "task_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Task not found"


class EventNotFound(KynError):
    code = "event_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Event not found"


class PollNotFound(KynError):
    code = "poll_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Poll not found"


class InvalidPollOption(KynError):
    code = "invalid_poll_option"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "That option does not exist on this poll"


class QuestionNotFound(KynError):
    code = "question_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Question not found"


class OperationFailed(KynError):
    code = "operation_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Something went wrong. Please try again."
