# ruff: noqa: S311
"""
Core application factories
"""

from django.utils import timezone

import factory.fuzzy

from core import enums, models


class UserFactory(factory.django.DjangoModelFactory):
    """A factory to random users for testing purposes."""

    class Meta:
        model = models.User

    username = factory.Sequence(lambda n: f"user{n!s}")
    email = factory.Faker("email")
    name = factory.Faker("name")
    bio = factory.Faker("sentence")
    avatar_url = None
    is_active = True


class ConversationFactory(factory.django.DjangoModelFactory):
    """A factory to random conversations for testing purposes."""

    class Meta:
        model = models.Conversation
        skip_postgeneration_save = True

    type = enums.ConversationTypeChoices.GROUP
    title = factory.Faker("catch_phrase")

    @factory.post_generation
    def members(self, create, users, **kwargs):
        """
        Optionally add active members to this conversation.
        Usage: ConversationFactory(members=[user1, user2])
        """
        if not create or not users:
            return
        for user in users:
            models.ConversationMember.objects.create(conversation=self, user=user)


class ConversationMemberFactory(factory.django.DjangoModelFactory):
    """A factory to random conversation memberships for testing purposes."""

    class Meta:
        model = models.ConversationMember

    conversation = factory.SubFactory(ConversationFactory)
    user = factory.SubFactory(UserFactory)
    role = enums.ConversationMemberRoleChoices.MEMBER
    is_active = True
    joined_at = factory.LazyFunction(timezone.now)


class MessageFactory(factory.django.DjangoModelFactory):
    """A factory to random messages for testing purposes."""

    class Meta:
        model = models.Message

    conversation = factory.SubFactory(ConversationFactory)
    sender = factory.SubFactory(UserFactory)
    type = enums.MessageTypeChoices.TEXT
    content = factory.Faker("sentence")


class AttachmentFactory(factory.django.DjangoModelFactory):
    """A factory to random attachments for testing purposes."""

    class Meta:
        model = models.Attachment

    message = factory.SubFactory(MessageFactory)
    file_name = factory.Faker("file_name", extension="pdf")
    mime_type = "application/pdf"
    object_key = factory.Sequence(lambda n: f"attachments/{n!s}")
    size_bytes = factory.fuzzy.FuzzyInteger(1, 10_000_000)


class BlockedUserFactory(factory.django.DjangoModelFactory):
    """A factory to random blocking relationships for testing purposes."""

    class Meta:
        model = models.BlockedUser

    blocking_user = factory.SubFactory(UserFactory)
    blocked_user = factory.SubFactory(UserFactory)


class ContactRequestFactory(factory.django.DjangoModelFactory):
    """A factory to random contact requests for testing purposes."""

    class Meta:
        model = models.ContactRequest

    sender = factory.SubFactory(UserFactory)
    receiver = factory.SubFactory(UserFactory)
    status = enums.ContactRequestStatusChoices.ACCEPTED
