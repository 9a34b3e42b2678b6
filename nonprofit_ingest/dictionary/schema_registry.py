# Nonprofit Ingest - Schema Registry
# ==================================
# Canonical target tables that imported columns are matched against
"""
Schema registry models and loaders.

A registry is a plain list of SchemaTable entries; the matcher never mutates
it. DEFAULT_SCHEMA_REGISTRY mirrors the CRM's core tables and is used when the
caller does not supply one.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import SchemaRegistryError

logger = logging.getLogger(__name__)


class SchemaField(BaseModel):
    """A target field with its accepted aliases."""
    field: str
    aliases: List[str] = Field(default_factory=list)
    type: str = "string"
    required: bool = False


class SchemaTable(BaseModel):
    """A target table of the canonical schema."""
    table: str
    label: str = ""
    aliases: List[str] = Field(default_factory=list)
    fields: List[SchemaField] = Field(default_factory=list)

    def required_fields(self) -> List[SchemaField]:
        return [f for f in self.fields if f.required]


def _address_fields() -> List[Dict[str, Any]]:
    return [
        {"field": "address_line1", "aliases": ["address", "street", "address1", "street_address", "mailing_address"]},
        {"field": "address_line2", "aliases": ["address2", "apt", "suite", "unit"]},
        {"field": "city", "aliases": ["town", "mailing_city"]},
        {"field": "state_province", "aliases": ["state", "province", "region", "mailing_state"]},
        {"field": "postal_code", "aliases": ["zip", "zip_code", "zipcode", "postcode", "mailing_zip"]},
        {"field": "country", "aliases": ["nation", "mailing_country"]},
    ]


DEFAULT_REGISTRY_DATA: List[Dict[str, Any]] = [
    {
        "table": "accounts",
        "label": "Accounts",
        "aliases": ["organizations", "households", "companies", "orgs"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["account_id"]},
            {"field": "account_number", "aliases": ["account_no", "account_code"]},
            {"field": "name", "required": True, "aliases": ["account_name", "organization", "organization_name", "company", "household_name"]},
            {"field": "account_type", "aliases": ["type", "category"]},
            {"field": "email", "type": "email", "aliases": ["email_address", "e_mail"]},
            {"field": "phone", "type": "phone", "aliases": ["phone_number", "telephone"]},
            {"field": "website", "aliases": ["url", "web", "homepage"]},
            {"field": "description", "type": "text", "aliases": ["notes", "about"]},
            *_address_fields(),
            {"field": "is_active", "type": "boolean", "aliases": ["active", "status"]},
            {"field": "created_at", "type": "datetime", "aliases": ["created", "date_created"]},
        ],
    },
    {
        "table": "contacts",
        "label": "Contacts",
        "aliases": ["people", "constituents", "donors", "members", "supporters"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["contact_id", "constituent_id"]},
            {"field": "account_id", "type": "uuid", "aliases": ["household_id", "organization_id"]},
            {"field": "first_name", "required": True, "aliases": ["first", "given_name", "fname", "firstname"]},
            {"field": "last_name", "required": True, "aliases": ["last", "surname", "family_name", "lname", "lastname"]},
            {"field": "email", "type": "email", "aliases": ["email_address", "e_mail", "primary_email"]},
            {"field": "phone", "type": "phone", "aliases": ["phone_number", "home_phone", "telephone", "tel"]},
            {"field": "mobile_phone", "type": "phone", "aliases": ["mobile", "cell", "cell_phone"]},
            {"field": "job_title", "aliases": ["title", "position", "role"]},
            {"field": "birth_date", "type": "date", "aliases": ["dob", "date_of_birth", "birthday"]},
            {"field": "gender", "aliases": ["sex"]},
            {"field": "preferred_contact_method", "aliases": ["contact_preference", "preferred_method"]},
            *_address_fields(),
            {"field": "notes", "type": "text", "aliases": ["comments", "description"]},
            {"field": "is_active", "type": "boolean", "aliases": ["active"]},
            {"field": "created_at", "type": "datetime", "aliases": ["created", "date_added"]},
        ],
    },
    {
        "table": "volunteers",
        "label": "Volunteers",
        "aliases": ["volunteer_roster"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["volunteer_id"]},
            {"field": "contact_id", "type": "uuid", "required": True, "aliases": ["contact", "person_id"]},
            {"field": "volunteer_status", "aliases": ["status"]},
            {"field": "skills", "type": "text", "aliases": ["skill", "skill_set", "abilities"]},
            {"field": "availability", "aliases": ["available", "schedule"]},
            {"field": "emergency_contact_name", "aliases": ["emergency_contact"]},
            {"field": "emergency_contact_phone", "type": "phone", "aliases": ["emergency_phone"]},
            {"field": "background_check_date", "type": "date", "aliases": ["background_check"]},
            {"field": "background_check_status", "aliases": ["check_status"]},
            {"field": "hours_contributed", "type": "decimal", "aliases": ["hours", "total_hours", "volunteer_hours"]},
        ],
    },
    {
        "table": "events",
        "label": "Events",
        "aliases": ["campaigns", "programs", "activities"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["event_id"]},
            {"field": "name", "required": True, "aliases": ["event_name", "title", "event"]},
            {"field": "description", "type": "text", "aliases": ["details", "summary"]},
            {"field": "event_type", "aliases": ["type", "category"]},
            {"field": "status", "aliases": ["event_status"]},
            {"field": "start_date", "type": "datetime", "required": True, "aliases": ["starts_at", "start", "event_date", "date"]},
            {"field": "end_date", "type": "datetime", "required": True, "aliases": ["ends_at", "end"]},
            {"field": "location_name", "aliases": ["location", "venue"]},
            *_address_fields(),
            {"field": "capacity", "type": "integer", "aliases": ["max_attendees", "max_capacity"]},
            {"field": "registered_count", "type": "integer", "aliases": ["registrations", "registered"]},
            {"field": "attended_count", "type": "integer", "aliases": ["attendance", "attended"]},
        ],
    },
    {
        "table": "event_registrations",
        "label": "Event Registrations",
        "aliases": ["registrations", "attendees", "rsvps"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["registration_id"]},
            {"field": "event_id", "type": "uuid", "required": True, "aliases": ["event"]},
            {"field": "contact_id", "type": "uuid", "required": True, "aliases": ["attendee_id", "contact"]},
            {"field": "registration_status", "aliases": ["status", "rsvp"]},
            {"field": "checked_in", "type": "boolean", "aliases": ["attended", "check_in"]},
            {"field": "check_in_time", "type": "datetime", "aliases": ["checked_in_at", "arrival_time"]},
            {"field": "notes", "type": "text", "aliases": ["comments"]},
        ],
    },
    {
        "table": "donations",
        "label": "Donations",
        "aliases": ["gifts", "contributions", "transactions", "pledges"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["donation_id", "gift_id"]},
            {"field": "donation_number", "aliases": ["gift_number", "receipt_number"]},
            {"field": "account_id", "type": "uuid", "aliases": ["household_id", "organization_id"]},
            {"field": "contact_id", "type": "uuid", "aliases": ["donor_id", "constituent_id"]},
            {"field": "amount", "type": "currency", "required": True, "aliases": ["gift_amount", "donation_amount", "total", "value"]},
            {"field": "currency", "aliases": ["currency_code"]},
            {"field": "donation_date", "type": "datetime", "required": True, "aliases": ["gift_date", "date", "received_date", "date_received"]},
            {"field": "payment_method", "aliases": ["method", "payment_type", "tender"]},
            {"field": "payment_status", "aliases": ["status"]},
            {"field": "transaction_id", "aliases": ["reference", "reference_number", "txn_id"]},
            {"field": "campaign_name", "aliases": ["campaign", "appeal", "fund"]},
            {"field": "designation", "aliases": ["purpose", "restriction", "fund_designation"]},
            {"field": "is_recurring", "type": "boolean", "aliases": ["recurring", "monthly"]},
            {"field": "recurring_frequency", "aliases": ["frequency", "interval"]},
            {"field": "notes", "type": "text", "aliases": ["comments", "memo"]},
            {"field": "receipt_sent", "type": "boolean", "aliases": ["acknowledged", "receipted"]},
            {"field": "receipt_sent_date", "type": "datetime", "aliases": ["acknowledged_date", "receipt_date"]},
        ],
    },
    {
        "table": "cases",
        "label": "Cases",
        "aliases": ["clients", "case_files", "intakes", "services"],
        "fields": [
            {"field": "id", "type": "uuid", "aliases": ["case_id"]},
            {"field": "case_number", "required": True, "aliases": ["case_no", "file_number"]},
            {"field": "contact_id", "type": "uuid", "required": True, "aliases": ["client_id", "client"]},
            {"field": "priority", "aliases": ["urgency"]},
            {"field": "title", "required": True, "aliases": ["subject", "case_title", "summary"]},
            {"field": "description", "type": "text", "aliases": ["details", "narrative"]},
            {"field": "source", "aliases": ["intake_source", "channel"]},
            {"field": "referral_source", "aliases": ["referred_by", "referral"]},
            {"field": "intake_date", "type": "datetime", "aliases": ["date_of_intake", "received"]},
            {"field": "opened_date", "type": "datetime", "aliases": ["opened", "open_date"]},
            {"field": "closed_date", "type": "datetime", "aliases": ["closed", "close_date"]},
            {"field": "due_date", "type": "date", "aliases": ["deadline", "due"]},
            {"field": "outcome", "aliases": ["result", "resolution"]},
            {"field": "is_urgent", "type": "boolean", "aliases": ["urgent"]},
        ],
    },
]


def build_schema_registry(data: List[Dict[str, Any]]) -> List[SchemaTable]:
    """
    Validate raw registry data into SchemaTable models.

    Raises:
        SchemaRegistryError: if an entry fails validation
    """
    if not isinstance(data, list):
        raise SchemaRegistryError("Schema registry must be a list of tables")
    try:
        return [SchemaTable.model_validate(entry) for entry in data]
    except ValidationError as e:
        raise SchemaRegistryError(f"Invalid schema registry: {e}") from e


def load_schema_registry(path: Union[str, Path]) -> List[SchemaTable]:
    """
    Load a registry from a JSON file holding a list of tables.

    Raises:
        SchemaRegistryError: if the file is missing, not JSON, or invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise SchemaRegistryError(f"Schema registry not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SchemaRegistryError(f"Schema registry is not valid JSON: {path}: {e}") from e

    tables = build_schema_registry(data)
    logger.info(f"Loaded schema registry {path.name}: {len(tables)} tables")
    return tables


def default_schema_registry() -> List[SchemaTable]:
    """Fresh copy of the built-in CRM registry."""
    return build_schema_registry(DEFAULT_REGISTRY_DATA)
