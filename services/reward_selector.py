"""
Lógica do checkout de apoio: escolha da recompensa e validação do valor.

``RewardSelector`` reproduz o comportamento da página de novo apoio. O usuário
escolhe uma recompensa, digita o valor e envia o formulário. O valor é
validado contra o mínimo da recompensa (ou o mínimo global quando o projeto
não tem recompensas) antes de o formulário ser enviado.
"""
import re
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from services.analytics import CONTRIBUTION_CATEGORY
from services.chat_widget import bootstrap_chat_widget

GROUPING_SEPARATOR = '.'
DECIMAL_SEPARATOR = ','
RETURN_KEY_CODE = 13
FREE_PLEDGE = None

# centavos opcionais, no máximo duas casas
_PLEDGE_VALUE = re.compile(r'^([0-9]+)(?:,([0-9]{0,2}))?$')


class RewardTier(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    minimum_value: Decimal
    description: Optional[str] = None
    shipping_options: Optional[str] = None


class SelectorState(Enum):
    NONE_SELECTED = 'none_selected'
    TIER_SELECTED = 'tier_selected'


class PledgeInput:
    """Campo de valor de uma recompensa (ou o campo livre, sem recompensa)"""

    def __init__(self, tier=None):
        self.tier = tier
        self.value = ''
        self.visible = False
        self.error = False

    def __repr__(self):
        tier_id = self.tier.id if self.tier else None
        return f'<PledgeInput tier={tier_id} value={self.value!r} error={self.error}>'


def restrict_input(raw):
    """Remove tudo que não for dígito, separador de milhar ou vírgula decimal"""
    allowed = re.escape(GROUPING_SEPARATOR + DECIMAL_SEPARATOR)
    return re.sub(rf'[^0-9{allowed}]', '', raw or '')


def _amount_text(amount, decimal_point='.'):
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f'{amount:.2f}'.replace('.', decimal_point)


def format_minimum(minimum):
    """Valor como o usuário vê no campo: ``100`` ou ``25,50``"""
    return _amount_text(minimum, DECIMAL_SEPARATOR)


def parse_pledge_value(raw, minimum):
    """
    Converte o valor digitado para o valor canônico do formulário.

    Retorna ``(canonical, parsed)``. Separadores de milhar são removidos, a
    vírgula é lida como ponto decimal e um valor vazio vira o mínimo
    da recompensa. ``canonical`` usa ponto decimal (``'10.50'``) e ``parsed``
    é o ``Decimal`` correspondente, ou None quando o texto não é um valor.
    """
    text = (raw or '').replace(GROUPING_SEPARATOR, '').strip()
    if text == '':
        amount = Decimal(minimum)
        return _amount_text(amount), amount

    match = _PLEDGE_VALUE.match(text)
    if match is None:
        return text, None

    integer, cents = match.groups()
    amount = Decimal(f'{integer}.{cents or 0}')
    return _amount_text(amount), amount


def below_minimum(parsed, minimum):
    if parsed is None:
        return True
    return parsed < Decimal(minimum)


class RewardSelector:
    def __init__(self, tiers, analytics, submit_form, global_minimum=Decimal('10.00'),
                 chat_widget=None, chat_project_ids=(), chat_poll_attempts=20,
                 chat_poll_interval=0.5):
        self.tiers = [RewardTier.model_validate(t) for t in tiers]
        self.analytics = analytics
        self.submit_form = submit_form
        self.global_minimum = Decimal(global_minimum)
        self.chat_widget = chat_widget
        self.chat_project_ids = set(chat_project_ids)
        self.chat_poll_attempts = chat_poll_attempts
        self.chat_poll_interval = chat_poll_interval

        if self.tiers:
            self.inputs = {t.id: PledgeInput(t) for t in self.tiers}
        else:
            free_input = PledgeInput()
            free_input.visible = True
            self.inputs = {FREE_PLEDGE: free_input}

        self.selected_id = None
        self.hidden_value = ''
        self.error_message_visible = False
        self.submitted = False
        self.chat_ready = False

    @property
    def state(self):
        if self.selected_id is None:
            return SelectorState.NONE_SELECTED
        return SelectorState.TIER_SELECTED

    @property
    def selected_tier(self):
        if self.selected_id is None:
            return None
        return self.inputs[self.selected_id].tier

    @property
    def current_input(self):
        if self.tiers:
            return self.inputs.get(self.selected_id)
        return self.inputs[FREE_PLEDGE]

    def minimum_value(self):
        tier = self.selected_tier
        if tier is None:
            return self.global_minimum
        return tier.minimum_value

    def activate(self, project_id=None, checked_tier_id=None, default_value=''):
        """Prepara a página: seleciona a recompensa marcada e carrega o chat"""
        self.analytics.emit(CONTRIBUTION_CATEGORY, 'contribution_started', project_id)

        if self.tiers and checked_tier_id is not None:
            self.select_tier(checked_tier_id)

        # copia o valor padrão do apoio renderizado para o primeiro campo
        first_input = next(iter(self.inputs.values()))
        first_input.value = default_value or ''

        if self.chat_widget is not None and project_id in self.chat_project_ids:
            self.chat_ready = bootstrap_chat_widget(
                self.chat_widget,
                attempts=self.chat_poll_attempts,
                interval=self.chat_poll_interval
            )

    def select_tier(self, tier_id):
        if tier_id not in self.inputs or tier_id is FREE_PLEDGE:
            raise KeyError(f'Recompensa {tier_id} não pertence a este checkout')
        if tier_id == self.selected_id:
            return

        for pledge_input in self.inputs.values():
            pledge_input.visible = False
        self.selected_id = tier_id

        selected = self.inputs[tier_id]
        selected.visible = True
        if selected.value == '':
            selected.value = format_minimum(selected.tier.minimum_value)

        self.analytics.emit(CONTRIBUTION_CATEGORY, 'contribution_reward_change',
                            format_minimum(self.minimum_value()))

    def clear_input_on_focus(self):
        pledge_input = self.current_input
        if pledge_input is not None:
            pledge_input.value = ''
        for other in self.inputs.values():
            other.error = False
        self.error_message_visible = False

    def type_value(self, raw):
        """Atualiza o campo selecionado a cada tecla, filtrando caracteres"""
        pledge_input = self.current_input
        if pledge_input is None:
            return ''
        pledge_input.value = restrict_input(raw)
        return pledge_input.value

    def key_up(self, key_code):
        if key_code == RETURN_KEY_CODE:
            return self.submit()
        return False

    def submit(self):
        """Valida o valor e envia o formulário; retorna True se enviou"""
        if self.submitted:
            return False

        pledge_input = self.current_input
        if pledge_input is None:
            return False

        minimum = self.minimum_value()
        canonical, parsed = parse_pledge_value(pledge_input.value, minimum)
        self.hidden_value = canonical

        if below_minimum(parsed, minimum):
            pledge_input.error = True
            self.error_message_visible = True
            return False

        label = format_minimum(minimum)
        self.analytics.emit(CONTRIBUTION_CATEGORY, 'contribution_continue_click', label, label)
        self.submitted = True
        self.submit_form({
            'reward_id': self.selected_id,
            'value': canonical
        })
        return True


class FaqBox:
    """Perguntas frequentes exibidas ao lado do checkout"""

    def __init__(self, questions, analytics):
        self.analytics = analytics
        self.open_questions = set()
        self.questions = list(questions)

    def toggle_question(self, question):
        if question in self.open_questions:
            self.open_questions.discard(question)
            return False

        self.open_questions.add(question)
        self.analytics.emit(CONTRIBUTION_CATEGORY, 'contribution_info_click', question.strip())
        return True
