"""
Reconciliação dos dados de cobrança entre o apoio e o perfil do usuário.

O apoio guarda uma cópia (snapshot) dos dados de cobrança no momento do
pagamento. Essa cópia pode divergir do perfil do usuário, que continua
evoluindo. As duas direções de cópia ficam aqui:

- ``snapshot_from_user``: perfil do usuário -> snapshot do apoio
- ``merge_into_user``: snapshot do apoio -> campos atualizados do perfil
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict

ACCOUNT_TYPE_INDIVIDUAL = 'pf'
ACCOUNT_TYPE_ORGANIZATION = 'pj'

# CPF formatado tem 14 caracteres (000.000.000-00); acima disso é CNPJ
INDIVIDUAL_DOCUMENT_MAX_LENGTH = 14

ADDRESS_FIELDS = (
    'country_id',
    'address_street',
    'address_number',
    'address_complement',
    'address_neighbourhood',
    'address_zip_code',
    'address_city',
    'address_state',
)


def presence(value):
    """Retorna o valor se ele estiver preenchido, senão None"""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BillingInfo(BaseModel):
    """Snapshot dos dados de cobrança guardado no apoio"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    country_id: Optional[int] = None
    address_street: Optional[str] = None
    address_number: Optional[str] = None
    address_complement: Optional[str] = None
    address_neighbourhood: Optional[str] = None
    address_zip_code: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    address_phone_number: Optional[str] = None
    payer_document: Optional[str] = None
    payer_name: Optional[str] = None
    payer_email: Optional[str] = None


class UserProfile(BaseModel):
    """Campos do perfil do usuário que participam da reconciliação"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    account_type: Optional[str] = None
    country_id: Optional[int] = None
    address_street: Optional[str] = None
    address_number: Optional[str] = None
    address_complement: Optional[str] = None
    address_neighbourhood: Optional[str] = None
    address_zip_code: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    phone_number: Optional[str] = None
    cpf: Optional[str] = None
    name: Optional[str] = None
    public_name: Optional[str] = None
    email: Optional[str] = None


def billing_info_from_user(profile: UserProfile) -> BillingInfo:
    values = {field: getattr(profile, field) for field in ADDRESS_FIELDS}
    values.update(
        address_phone_number=profile.phone_number,
        payer_document=profile.cpf,
        payer_name=profile.name,
        payer_email=profile.email,
    )
    return BillingInfo(**values)


def apply_billing_info(contribution, info: BillingInfo):
    """Escreve o snapshot nos campos do apoio, sobrescrevendo tudo"""
    for field, value in info.model_dump().items():
        setattr(contribution, field, value)
    return contribution


def snapshot_from_user(contribution, user):
    """Copia os dados de cobrança atuais do usuário para o apoio"""
    info = billing_info_from_user(UserProfile.model_validate(user))
    return apply_billing_info(contribution, info)


def infer_account_type(profile: UserProfile, snapshot: BillingInfo) -> str:
    if presence(profile.cpf):
        return profile.account_type
    document = snapshot.payer_document or ''
    if len(document) > INDIVIDUAL_DOCUMENT_MAX_LENGTH:
        return ACCOUNT_TYPE_ORGANIZATION
    return ACCOUNT_TYPE_INDIVIDUAL


def merge_into_user(snapshot: BillingInfo, profile: UserProfile) -> UserProfile:
    """
    Calcula o perfil atualizado do usuário a partir do snapshot do apoio.

    Campos de endereço e telefone preferem o valor do apoio quando preenchido.
    Documento e nome já cadastrados no perfil nunca são trocados. Nenhum campo
    preenchido do usuário é substituído por um valor vazio do apoio.
    """
    merged = {
        field: presence(getattr(snapshot, field)) or getattr(profile, field)
        for field in ADDRESS_FIELDS
    }
    merged.update(
        account_type=infer_account_type(profile, snapshot),
        phone_number=presence(snapshot.address_phone_number) or profile.phone_number,
        cpf=presence(profile.cpf) or presence(snapshot.payer_document),
        name=presence(profile.name) or snapshot.payer_name,
        public_name=presence(profile.public_name) or presence(profile.name) or snapshot.payer_name,
    )
    return profile.model_copy(update=merged)


def changed_fields(before: UserProfile, after: UserProfile) -> dict:
    old = before.model_dump()
    return {k: v for k, v in after.model_dump().items() if old.get(k) != v}
