from __future__ import annotations

from django import forms
from django.utils.translation import gettext_lazy as _

from web.workflow.constraints import NAME_MAX, NAME_MIN, PASSWORD_MAX, PASSWORD_MIN, is_valid_email


class LoginForm(forms.Form):
    """Login form.

    Fields:
        email: Account e-mail.
        password: Plaintext password.
    """

    email = forms.EmailField(
        label=_("Email"),
        widget=forms.EmailInput(attrs={"class": "field__input", "autocomplete": "email"}),
    )

    password = forms.CharField(
        label=_("Password"),
        widget=forms.PasswordInput(attrs={"class": "field__input", "autocomplete": "current-password"}),
        min_length=1,
    )


class _PersonForm(forms.Form):
    first_name = forms.CharField(
        label=_("First name"),
        min_length=NAME_MIN,
        max_length=NAME_MAX,
        widget=forms.TextInput(attrs={"class": "field__input", "autocomplete": "given-name"}),
    )
    last_name = forms.CharField(
        label=_("Last name"),
        min_length=NAME_MIN,
        max_length=NAME_MAX,
        widget=forms.TextInput(attrs={"class": "field__input", "autocomplete": "family-name"}),
    )
    email = forms.EmailField(
        label=_("Email"),
        widget=forms.EmailInput(attrs={"class": "field__input", "autocomplete": "email"}),
    )

    def clean_email(self) -> str:
        email: str = self.cleaned_data.get("email") or ""
        if not is_valid_email(email):
            raise forms.ValidationError(_("Enter a valid email address."))
        return email


class RegisterForm(_PersonForm):
    """Registration form.

    Fields:
        first_name: First name (2-50 characters).
        last_name: Last name (2-50 characters).
        email: Email.
        password: Plaintext password.
        confirm_password: Password confirmation.
    """

    password = forms.CharField(
        label=_("Password"),
        widget=forms.PasswordInput(attrs={"class": "field__input", "autocomplete": "new-password"}),
        min_length=PASSWORD_MIN,
        max_length=PASSWORD_MAX,
        help_text=_("Minimum 6 characters."),
    )
    confirm_password = forms.CharField(
        label=_("Confirm password"),
        widget=forms.PasswordInput(attrs={"class": "field__input", "autocomplete": "new-password"}),
        min_length=PASSWORD_MIN,
        max_length=PASSWORD_MAX,
    )

    def clean(self):
        cleaned = super().clean()
        pwd = cleaned.get("password")
        pwd2 = cleaned.get("confirm_password")
        if pwd and pwd2 and pwd != pwd2:
            self.add_error("confirm_password", _("Passwords don't match"))
        return cleaned


class ProfileForm(_PersonForm):
    """Profile edit form for the signed-in user."""

    current_password = forms.CharField(
        label=_("Current password"),
        widget=forms.PasswordInput(attrs={"class": "field__input", "autocomplete": "current-password"}),
        required=False,
    )


class AdminUserForm(_PersonForm):
    """Administrator form for editing another user's profile."""
