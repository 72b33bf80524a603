"""Lazy 1:1 site sub-resources (credential, contract, server info).

Rows only exist after the first write. Readers always get a typed value
back, with ``exists=False`` (or all-None fields) when nothing is stored yet.
Credential secrets pass through the codec here and nowhere else.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.crypto import Crypto
from sitedesk.models import SiteContract, SiteCredential, SiteServerInfo
from sitedesk.models.site_credential import SECRET_FIELDS
from sitedesk.schemas.site_details import (
    ContractData,
    ContractResponse,
    CredentialData,
    ServerInfoResponse,
)

logger = logging.getLogger(__name__)


def get_crypto() -> Crypto:
    return Crypto(settings.app_encryption_key)


def encode_credential_fields(values: dict, crypto: Crypto) -> dict:
    encoded = {}
    for field, value in values.items():
        if field in SECRET_FIELDS:
            encoded[field] = crypto.encrypt(value)
        else:
            encoded[field] = value or None
    return encoded


def decode_credential(row: SiteCredential | None, crypto: Crypto) -> CredentialData:
    if row is None:
        return CredentialData()
    values = {}
    for field in CredentialData.model_fields:
        raw = getattr(row, field)
        values[field] = crypto.decrypt(raw) if field in SECRET_FIELDS else raw
    return CredentialData(**values)


async def _get_row(db: AsyncSession, model, site_id: int):
    result = await db.execute(select(model).where(model.site_id == site_id))
    return result.scalar_one_or_none()


async def get_credentials(
    db: AsyncSession, site_id: int, crypto: Crypto | None = None
) -> CredentialData:
    row = await _get_row(db, SiteCredential, site_id)
    if row is None:
        return CredentialData()
    return decode_credential(row, crypto or get_crypto())


async def save_credentials(
    db: AsyncSession,
    site_id: int,
    data: CredentialData,
    crypto: Crypto | None = None,
) -> CredentialData:
    """Write the fields present in ``data``; omitted fields keep their stored value."""
    crypto = crypto or get_crypto()
    values = encode_credential_fields(data.model_dump(exclude_unset=True), crypto)

    row = await _get_row(db, SiteCredential, site_id)
    if row is None:
        row = SiteCredential(site_id=site_id, **values)
        db.add(row)
    else:
        for field, value in values.items():
            setattr(row, field, value)
    await db.commit()

    logger.info("Credentials updated for site %s (%s fields)", site_id, len(values))
    return decode_credential(row, crypto)


def contract_response(site_id: int, row: SiteContract | None) -> ContractResponse:
    if row is None:
        return ContractResponse(site_id=site_id, exists=False)
    return ContractResponse(
        site_id=site_id,
        contract_start_date=row.contract_start_date,
        contract_end_date=row.contract_end_date,
        contract_capacity=row.contract_capacity,
        contract_storage_usage=row.contract_storage_usage,
        contract_storage_limit=row.contract_storage_limit,
        is_active=row.is_active(),
        is_expired=row.is_expired(),
        days_until_expiry=row.days_until_expiry(),
    )


async def get_contract(db: AsyncSession, site_id: int) -> ContractResponse:
    return contract_response(site_id, await _get_row(db, SiteContract, site_id))


async def save_contract(db: AsyncSession, site_id: int, data: ContractData) -> ContractResponse:
    values = data.model_dump()
    row = await _get_row(db, SiteContract, site_id)
    if row is None:
        row = SiteContract(site_id=site_id, **values)
        db.add(row)
    else:
        for field, value in values.items():
            setattr(row, field, value)
    await db.commit()
    return contract_response(site_id, row)


async def delete_contract(db: AsyncSession, site_id: int) -> bool:
    row = await _get_row(db, SiteContract, site_id)
    if row is None:
        return False
    await db.delete(row)
    await db.commit()
    return True


async def get_server_info(db: AsyncSession, site_id: int) -> ServerInfoResponse:
    row = await _get_row(db, SiteServerInfo, site_id)
    if row is None:
        return ServerInfoResponse(site_id=site_id, exists=False)
    return ServerInfoResponse.model_validate(row)
