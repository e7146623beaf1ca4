"""
Serviço de validação para apoios
"""
from decimal import Decimal, InvalidOperation
from flask import current_app
from database import db
from models.project import Project
from models.user import User
from models.reward import Reward
from security import logger


class ContributionValidationError(Exception):
    """Erros de validação por campo que impedem salvar o apoio"""

    def __init__(self, errors):
        self.errors = errors
        super().__init__('; '.join(
            f'{field}: {", ".join(messages)}' for field, messages in errors.items()
        ))


class ValidationService:
    @staticmethod
    def minimum_value():
        return Decimal(str(current_app.config['MINIMUM_CONTRIBUTION_VALUE']))

    @staticmethod
    def validar_contribuicao(contribution):
        """Valida um apoio antes de salvar; retorna os erros por campo"""
        errors = {}

        if contribution.project_id is None or db.session.get(Project, contribution.project_id) is None:
            errors.setdefault('project', []).append('não pode ficar em branco')

        if contribution.user_id is None or db.session.get(User, contribution.user_id) is None:
            errors.setdefault('user', []).append('não pode ficar em branco')

        if contribution.value is None or contribution.value == '':
            errors.setdefault('value', []).append('não pode ficar em branco')
        else:
            try:
                valor_decimal = Decimal(str(contribution.value))
            except InvalidOperation:
                errors.setdefault('value', []).append('não é um número')
            else:
                minimo = ValidationService.minimum_value()
                if valor_decimal < minimo:
                    errors.setdefault('value', []).append(f'deve ser maior ou igual a {minimo}')

        if contribution.reward_id is not None:
            reward = db.session.get(Reward, contribution.reward_id)
            if reward is None:
                errors.setdefault('reward', []).append('não encontrada')
            elif reward.project_id != contribution.project_id:
                # Recompensa de outro projeto não bloqueia o apoio; fica registrado
                logger.warning("reward_project_mismatch",
                               reward_id=reward.id,
                               reward_project_id=reward.project_id,
                               project_id=contribution.project_id)

        return errors

    @staticmethod
    def validar_ou_falhar(contribution):
        errors = ValidationService.validar_contribuicao(contribution)
        if errors:
            logger.warning("contribution_validation_failed", errors=errors)
            raise ContributionValidationError(errors)
