"""Adapter exposing the signed-in user's profile."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..store import StorageKeys
from ..store.models import UserProfile
from .base import AppAdapter
from .fields import FieldSpec, search_in_fields
from .types import SearchMatch, Snapshot

SEARCHABLE_FIELDS = [
    FieldSpec("full_name", "Full Name", "profile_field"),
    FieldSpec("nickname", "Nickname", "profile_field"),
    FieldSpec("email", "Email", "profile_field"),
    FieldSpec("phone", "Phone", "profile_field"),
    FieldSpec("unique_id", "Unique ID", "profile_field"),
    FieldSpec("address.street", "Address street", "address_field"),
    FieldSpec("address.city", "Address city", "address_field"),
    FieldSpec("address.state", "Address state", "address_field"),
    FieldSpec("address.zip", "Address zip", "address_field"),
    FieldSpec("address.country", "Address country", "address_field"),
]


class UserProfileAdapter(AppAdapter):
    """Profile fields are always part of the context, even when empty."""

    app_name = "userProfile"
    display_name = "User Profile"
    icon = "👤"
    inactive_summary = "No profile data available"

    def reset(self) -> None:
        self.profile: Optional[UserProfile] = None

    def reload(self) -> None:
        self.profile = self.read_record(StorageKeys.USER_PROFILE, UserProfile.from_dict)

    def update_profile(self, profile: UserProfile) -> None:
        """Store a new profile and notify subscribers."""
        self.store.set(StorageKeys.USER_PROFILE, profile.to_dict())
        self.profile = profile
        self._notify_subscribers()

    def empty_data(self) -> Dict[str, Any]:
        return UserProfile().model_dump()

    def transform(self) -> Dict[str, Any]:
        return self.profile.model_dump() if self.profile else self.empty_data()

    def summarize(self, data: Dict[str, Any]) -> str:
        if self.profile is None:
            return self.inactive_summary

        parts = []
        name = self.profile.nickname or self.profile.full_name
        if name:
            parts.append(f"User: {name}")
        if self.profile.email:
            parts.append(f"Email: {self.profile.email}")
        if self.profile.address.is_complete():
            parts.append(f"Location: {self.profile.address.city}, {self.profile.address.state}")
        return ", ".join(parts) if parts else "Profile incomplete"

    def last_used(self, data: Dict[str, Any]) -> int:
        return self.clock.now()

    def keywords(self) -> List[str]:
        return [
            "my name", "what's my name", "who am i", "my identity",
            "nickname", "full name", "username", "unique id",
            "my email", "email address", "my phone", "phone number",
            "contact", "contact info", "contact information",
            "my address", "where do i live", "home address", "location",
            "street", "city", "state", "zip", "postal", "country",
            "my birthday", "date of birth", "when was i born", "my age",
            "gender", "marital status", "personal info", "profile",
            "my info", "my information", "my details", "my data",
            "about me", "my profile", "user profile", "account info",
        ]

    def capabilities(self) -> List[str]:
        return [
            "personal information",
            "address lookup",
            "profile details",
            "contact information",
            "birthday information",
        ]

    def _age(self, birth: datetime) -> int:
        today = self.clock.current_datetime()
        age = today.year - birth.year
        if (today.month, today.day) < (birth.month, birth.day):
            age -= 1
        return age

    def _birth_date(self) -> datetime:
        return self.clock.parse(self.profile.date_of_birth) or self.clock.current_datetime()

    def respond(self, query: str, snapshot: Snapshot) -> Optional[str]:
        profile = self.profile
        if profile is None:
            return (
                "I don't have access to your profile information yet. "
                "Please make sure you're logged in and have filled out your profile."
            )

        if "name" in query or "who am i" in query:
            return self._name_response(profile)

        if "email" in query:
            if profile.email:
                return f"Your email address is {profile.email}."
            return "You haven't set an email address in your profile."

        if "phone" in query:
            if profile.phone:
                return f"Your phone number is {profile.phone}."
            return "You haven't added a phone number to your profile."

        if "address" in query or "where do i live" in query:
            return self._address_response(profile)

        if "birthday" in query or "birth" in query or "age" in query:
            if not profile.date_of_birth:
                return "You haven't added your date of birth to your profile."
            birth = self._birth_date()
            formatted = f"{birth.strftime('%B')} {birth.day}, {birth.year}"
            return f"Your birthday is {formatted}. You are {self._age(birth)} years old."

        if "gender" in query:
            if profile.gender:
                return f"Your gender is listed as {profile.gender}."
            return "You haven't specified your gender in your profile."

        if "marital" in query or "married" in query:
            if profile.marital_status:
                return f"Your marital status is {profile.marital_status}."
            return "You haven't specified your marital status."

        if "my info" in query or "my profile" in query or "about me" in query:
            return self._profile_overview(profile)

        if "contact" in query:
            return self._contact_response(profile)

        return (
            "I can help you with your profile information. You can ask about your name, "
            "email, phone, address, birthday, or other profile details."
        )

    def _name_response(self, profile: UserProfile) -> str:
        if profile.full_name:
            response = f"Your full name is {profile.full_name}"
            if profile.nickname and profile.nickname != profile.full_name:
                response += f", but you go by {profile.nickname}"
            if profile.unique_id:
                response += f". Your unique ID is {profile.unique_id}"
            return response + "."
        if profile.nickname:
            return f"You go by {profile.nickname}."
        return "You haven't set your name in your profile yet."

    def _address_response(self, profile: UserProfile) -> str:
        address = profile.address
        if address.is_complete():
            return f"Your address is {address.street}, {address.city}, {address.state} {address.zip}, {address.country}."
        if address.city:
            state = f", {address.state}" if address.state else ""
            return f"You live in {address.city}{state}."
        return "You haven't added your address to your profile."

    def _profile_overview(self, profile: UserProfile) -> str:
        sections = []
        if profile.full_name or profile.nickname:
            name = f"**Name**: {profile.full_name or profile.nickname}"
            if profile.nickname and profile.full_name and profile.nickname != profile.full_name:
                name += f" (goes by {profile.nickname})"
            if profile.unique_id:
                name += f" - ID: {profile.unique_id}"
            sections.append(name)

        personal = []
        if profile.date_of_birth:
            personal.append(f"{self._age(self._birth_date())} years old")
        if profile.gender:
            personal.append(profile.gender)
        if profile.marital_status:
            personal.append(profile.marital_status)
        if personal:
            sections.append(f"**Personal**: {', '.join(personal)}")

        contact = [value for value in (profile.email, profile.phone) if value]
        if contact:
            sections.append(f"**Contact**: {', '.join(contact)}")

        address = profile.address
        if address.is_complete():
            sections.append(f"**Address**: {address.street}, {address.city}, {address.state} {address.zip}")

        if not sections:
            return "Your profile is incomplete. Consider adding more information."
        return "Here's your profile information:\n\n" + "\n".join(sections)

    def _contact_response(self, profile: UserProfile) -> str:
        contact = []
        if profile.email:
            contact.append(f"Email: {profile.email}")
        if profile.phone:
            contact.append(f"Phone: {profile.phone}")
        address = profile.address
        if address.is_complete():
            contact.append(f"Address: {address.street}, {address.city}, {address.state} {address.zip}")

        if not contact:
            return "You haven't added any contact information to your profile yet."
        return "Your contact information:\n" + "\n".join(contact)

    def find_matches(self, query: str) -> List[SearchMatch]:
        if self.profile is None:
            return []
        return search_in_fields(self.profile.model_dump(), query, SEARCHABLE_FIELDS)
