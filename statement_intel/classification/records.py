"""
Domain Record Builders

Turns a detected RecurringPattern plus its DomainSuggestion into a typed,
validated record for the suggested domain. Every Domain has exactly one
variant model and one builder; the module refuses to import otherwise.
"""
from datetime import date
from typing import Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from statement_intel.common.models import DomainSuggestion, RecurringPattern
from .domains import Domain

CURRENCY = 'GBP'
IMPORT_SOURCE = 'bank_import'


class SuggestionInfo(BaseModel):
    suggested_domain: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    actual_domain: Optional[str] = None


class AmountPattern(BaseModel):
    typical_amount: float
    variance: float = Field(ge=0.0)
    currency: str = CURRENCY


class ImportMetadata(BaseModel):
    """Provenance shared by every record created from a bank import."""
    source: str = IMPORT_SOURCE
    import_session_id: Optional[str] = None
    created_from_suggestion: bool = True
    original_payee: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    import_date: date
    detected_frequency: str
    domain_suggestion: SuggestionInfo
    amount_pattern: AmountPattern


class BaseRecord(BaseModel):
    name: str = Field(min_length=1)
    priority: Literal['Critical', 'Important', 'Standard'] = 'Standard'
    notes: str = ""
    import_metadata: ImportMetadata


class PropertyRecord(BaseRecord):
    domain: Literal['property'] = 'property'
    record_type: str
    provider: Optional[str] = None
    monthly_amount: Optional[float] = None


class VehicleRecord(BaseRecord):
    domain: Literal['vehicles'] = 'vehicles'
    record_type: str
    finance_provider: Optional[str] = None
    finance_monthly_payment: Optional[float] = None


class FinanceRecord(BaseRecord):
    domain: Literal['finance'] = 'finance'
    account_type: str
    institution: Optional[str] = None
    sort_code: Optional[str] = Field(default=None, pattern=r"^\d{2}-\d{2}-\d{2}$")
    account_number: Optional[str] = None
    monthly_payment: Optional[float] = None


class InsuranceRecord(BaseRecord):
    domain: Literal['insurance'] = 'insurance'
    policy_type: str
    provider: Optional[str] = None
    premium: Optional[float] = None


class GovernmentRecord(BaseRecord):
    domain: Literal['government'] = 'government'
    record_type: str
    issuing_authority: Optional[str] = None


class ServicesRecord(BaseRecord):
    domain: Literal['services'] = 'services'
    record_type: str
    service_provider: Optional[str] = None
    monthly_fee: Optional[float] = None


class EmploymentRecord(BaseRecord):
    domain: Literal['employment'] = 'employment'
    record_type: str
    employer: Optional[str] = None
    salary: Optional[float] = None


class LegalRecord(BaseRecord):
    domain: Literal['legal'] = 'legal'
    document_type: str
    solicitor_name: Optional[str] = None


DomainRecord = Union[
    PropertyRecord, VehicleRecord, FinanceRecord, InsuranceRecord,
    GovernmentRecord, ServicesRecord, EmploymentRecord, LegalRecord,
]


def build_import_metadata(pattern: RecurringPattern, suggestion: DomainSuggestion,
                          session_id: Optional[str] = None,
                          import_date: Optional[date] = None) -> ImportMetadata:
    return ImportMetadata(
        import_session_id=session_id,
        original_payee=pattern.payee,
        confidence_score=pattern.confidence,
        import_date=import_date or date.today(),
        detected_frequency=pattern.frequency,
        domain_suggestion=SuggestionInfo(
            suggested_domain=suggestion.domain,
            confidence=suggestion.confidence,
            reasoning=suggestion.reasoning,
        ),
        amount_pattern=AmountPattern(
            typical_amount=abs(pattern.typical_amount or pattern.average_amount),
            variance=pattern.amount_variance,
        ),
    )


def _common(pattern: RecurringPattern, metadata: ImportMetadata) -> dict:
    return {
        'name': pattern.title or pattern.payee,
        'notes': (f"Created from recurring pattern\nFrequency: {pattern.frequency}\n"
                  f"Confidence: {round(pattern.confidence * 100)}%"),
        'import_metadata': metadata,
    }


def _amount(pattern: RecurringPattern) -> float:
    return abs(pattern.average_amount)


def build_property(pattern, record_type, metadata):
    return PropertyRecord(record_type=record_type, provider=pattern.provider or pattern.payee,
                          monthly_amount=_amount(pattern), **_common(pattern, metadata))


def build_vehicle(pattern, record_type, metadata):
    finance = record_type == 'finance'
    return VehicleRecord(record_type=record_type,
                         finance_provider=pattern.payee if finance else None,
                         finance_monthly_payment=_amount(pattern) if finance else None,
                         **_common(pattern, metadata))


def build_finance(pattern, record_type, metadata):
    return FinanceRecord(account_type=record_type, institution=pattern.provider or pattern.payee,
                         monthly_payment=_amount(pattern), **_common(pattern, metadata))


def build_insurance(pattern, record_type, metadata):
    return InsuranceRecord(policy_type=record_type, provider=pattern.provider or pattern.payee,
                           premium=_amount(pattern), **_common(pattern, metadata))


def build_government(pattern, record_type, metadata):
    return GovernmentRecord(record_type=record_type, issuing_authority=pattern.payee,
                            **_common(pattern, metadata))


def build_services(pattern, record_type, metadata):
    return ServicesRecord(record_type=record_type, service_provider=pattern.provider or pattern.payee,
                          monthly_fee=_amount(pattern), **_common(pattern, metadata))


def build_employment(pattern, record_type, metadata):
    return EmploymentRecord(record_type=record_type, employer=pattern.payee,
                            salary=_amount(pattern), **_common(pattern, metadata))


def build_legal(pattern, record_type, metadata):
    return LegalRecord(document_type=record_type, solicitor_name=pattern.payee,
                       **_common(pattern, metadata))


_BUILDERS: Dict[Domain, Callable[..., BaseRecord]] = {
    Domain.PROPERTY: build_property,
    Domain.VEHICLES: build_vehicle,
    Domain.FINANCE: build_finance,
    Domain.INSURANCE: build_insurance,
    Domain.GOVERNMENT: build_government,
    Domain.SERVICES: build_services,
    Domain.EMPLOYMENT: build_employment,
    Domain.LEGAL: build_legal,
}

_unhandled = set(Domain) - set(_BUILDERS)
if _unhandled:
    raise RuntimeError(f"No record builder for domains: {sorted(d.value for d in _unhandled)}")


def build_record(pattern: RecurringPattern, suggestion: Optional[DomainSuggestion] = None,
                 domain: Optional[Union[Domain, str]] = None, session_id: Optional[str] = None,
                 import_date: Optional[date] = None) -> BaseRecord:
    """
    Build the typed record for a pattern.

    The domain defaults to the suggestion's (or the pattern's own suggested
    domain); passing ``domain`` overrides it and is recorded as the actual
    domain in the import metadata.

    Raises:
        ValueError: unknown domain name
        pydantic.ValidationError: a field failed validation
    """
    if suggestion is None:
        suggestion = DomainSuggestion(
            domain=pattern.suggested_domain,
            confidence=pattern.confidence,
            record_type=pattern.suggested_record_type,
            reasoning="",
        )
    target = Domain(domain if domain is not None else suggestion.domain)

    metadata = build_import_metadata(pattern, suggestion, session_id, import_date)
    if target.value != suggestion.domain:
        metadata.domain_suggestion.actual_domain = target.value
        record_type = 'other'
    else:
        record_type = suggestion.record_type or 'other'

    return _BUILDERS[target](pattern, record_type, metadata)
