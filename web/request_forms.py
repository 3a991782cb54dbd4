from __future__ import annotations

from typing import Any, cast

from django import forms
from django.utils.translation import gettext_lazy as _

from web.config import settings
from web.workflow.constraints import COMMENT_MAX, DESCRIPTION_MAX, TITLE_MAX


def _text(label: str, max_length: int, *, required: bool = True, placeholder: str | None = None) -> forms.CharField:
    attrs = {"class": "field__input"}
    if placeholder:
        attrs["placeholder"] = placeholder
    return forms.CharField(label=label, max_length=max_length, required=required, widget=forms.TextInput(attrs=attrs))


def _area(label: str, *, required: bool = False, placeholder: str | None = None) -> forms.CharField:
    attrs: dict[str, object] = {"class": "field__input", "rows": 4}
    if placeholder:
        attrs["placeholder"] = placeholder
    return forms.CharField(label=label, max_length=COMMENT_MAX, required=required, widget=forms.Textarea(attrs=attrs))


def _language_choices() -> list[tuple[str, str]]:
    return [("", _("Select a language"))] + [(lang, lang) for lang in settings.languages]


def _language(label: str) -> forms.ChoiceField:
    return forms.ChoiceField(
        label=label,
        choices=_language_choices,
        widget=forms.Select(attrs={"class": "field__input"}),
    )


class TranslationRequestModifyForm(forms.Form):
    """Metadata of a translation request (editable while Pending or Rejected)."""

    title = _text(_("Title"), TITLE_MAX)
    description = forms.CharField(
        label=_("Description"),
        max_length=DESCRIPTION_MAX,
        required=False,
        widget=forms.Textarea(attrs={"class": "field__input", "rows": 4}),
    )
    source_language = _language(_("Source language"))
    target_language = _language(_("Target language"))
    user_comment = _area(_("Comment"))

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        # Keep languages of existing requests selectable even if no longer configured.
        for name in ("source_language", "target_language"):
            field = cast(forms.ChoiceField, self.fields[name])
            current = self.initial.get(name)
            if current and current not in dict(field.choices):
                field.choices = [*field.choices, (current, current)]

    def clean(self):
        cleaned = super().clean()
        src = (cleaned.get("source_language") or "").strip().lower()
        dst = (cleaned.get("target_language") or "").strip().lower()
        if src and src == dst:
            self.add_error("target_language", _("Target language must differ from the source language."))
        return cleaned


class TranslationRequestCreateForm(TranslationRequestModifyForm):
    """Form for submitting a new document for translation."""

    file = forms.FileField(label=_("Document"), help_text=_("Allowed types: txt, doc, docx, pdf"))


class ResubmitForm(forms.Form):
    """Resubmission of a rejected request; the replacement file is optional."""

    user_comment = _area(_("What changed?"), placeholder=_("Explain the changes made since the rejection"))
    file = forms.FileField(label=_("Replacement document"), required=False)


class AdminCommentForm(forms.Form):
    """Optional administrator comment (approve).

    Notes:
        - Can be empty for APPROVE
        - REJECT uses RejectForm, where the comment is mandatory
    """

    comment = _area(_("Comment"), placeholder=_("Optional note for the requester"))


class RejectForm(forms.Form):
    comment = _area(_("Reason for rejection"), required=True)

    def clean_comment(self) -> str:
        comment: str = (self.cleaned_data.get("comment") or "").strip()
        if not comment:
            raise forms.ValidationError(_("Comment is required when rejecting a request."))
        return comment


class CompleteForm(forms.Form):
    """Upload of the translated document."""

    file = forms.FileField(label=_("Translated document"))
    admin_comment = _area(_("Comment"))
