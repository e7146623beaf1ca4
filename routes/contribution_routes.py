from decimal import Decimal
from flask import Blueprint, jsonify, request, current_app
from pydantic import ValidationError
from database import db
from models.contribution import Contribution
from models.project import Project
from models.user import User
from production import validate_request_json
from security import limiter, logger
from services.analytics import LoggingAnalyticsSink
from services.billing_service import BillingInfo
from services.reward_selector import RewardSelector, format_minimum
from services.validation_service import ContributionValidationError, ValidationService
from config import Config

contribution_bp = Blueprint('contributions', __name__)


def validation_error(errors):
    return jsonify({
        'success': False,
        'error': 'Dados inválidos',
        'errors': errors
    }), 422


@contribution_bp.route('/api/projects/<int:project_id>/contributions', methods=['POST'])
@limiter.limit(Config.RATE_LIMIT_CONTRIBUTION)
@validate_request_json()
def criar_apoio(project_id):
    """Recebe o formulário do checkout e cria o apoio"""
    project = db.get_or_404(Project, project_id)
    data = request.get_json()
    logger.info("contribution_request_received", project_id=project.id)

    user = db.session.get(User, data['user_id']) if data.get('user_id') else None
    if user is None:
        return validation_error({'user': ['não pode ficar em branco']})

    # O formulário passa pelas mesmas regras do checkout no navegador
    reward_id = data.get('reward_id')
    submitted = []
    selector = RewardSelector(
        project.rewards if reward_id is not None else [],
        analytics=LoggingAnalyticsSink(),
        submit_form=submitted.append,
        global_minimum=current_app.config['MINIMUM_CONTRIBUTION_VALUE']
    )
    if reward_id is not None:
        try:
            selector.select_tier(int(reward_id))
        except (KeyError, TypeError, ValueError):
            return validation_error({'reward': ['não pertence a este projeto']})

    selector.type_value(str(data.get('value') or ''))
    if not selector.submit():
        minimo = format_minimum(selector.minimum_value())
        logger.warning("contribution_below_minimum", project_id=project.id,
                       reward_id=reward_id, minimum=minimo)
        return validation_error({'value': [f'o valor mínimo para esta recompensa é {minimo}']})

    form = submitted[0]
    try:
        contribution = Contribution(
            project=project,
            project_id=project.id,
            user=user,
            user_id=user.id,
            reward_id=form['reward_id'],
            value=Decimal(form['value']),
            anonymous=bool(data.get('anonymous', False)),
            origin_id=data.get('origin_id')
        )
        ValidationService.validar_ou_falhar(contribution)
        contribution.update_current_billing_info()

        db.session.add(contribution)
        db.session.commit()
    except ContributionValidationError as e:
        db.session.rollback()
        return validation_error(e.errors)
    except Exception as e:
        db.session.rollback()
        logger.error("contribution_error", error=str(e))
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500

    logger.info("contribution_created",
                contribution_id=contribution.id,
                project_id=project.id,
                reward_id=contribution.reward_id,
                valor=float(contribution.value))

    return jsonify({
        'success': True,
        'contribution': contribution.contribution_attributes()
    }), 201


@contribution_bp.route('/api/contributions/<int:contribution_id>', methods=['GET'])
def obter_apoio(contribution_id):
    contribution = db.get_or_404(Contribution, contribution_id)
    return jsonify({
        'success': True,
        'contribution': contribution.contribution_attributes(),
        'international': contribution.international(),
        'confirmed': contribution.confirmed()
    })


@contribution_bp.route('/api/contributions/<int:contribution_id>/reward', methods=['PATCH'])
@validate_request_json()
def trocar_recompensa(contribution_id):
    contribution = db.get_or_404(Contribution, contribution_id)
    data = request.get_json()

    if not contribution.change_reward(data.get('reward_id')):
        return validation_error(contribution.errors)

    return jsonify({'success': True, 'contribution': contribution.to_js()})


@contribution_bp.route('/api/contributions/<int:contribution_id>/billing', methods=['PUT'])
@validate_request_json()
def atualizar_dados_cobranca(contribution_id):
    """Grava os dados de cobrança do apoio e reflete no perfil do usuário"""
    contribution = db.get_or_404(Contribution, contribution_id)

    try:
        info = BillingInfo.model_validate(request.get_json())
    except ValidationError as e:
        errors = {}
        for error in e.errors():
            errors.setdefault(str(error['loc'][0]), []).append(error['msg'])
        return validation_error(errors)

    try:
        contribution.update_billing_info(info)
        changes = contribution.update_user_billing_info()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("billing_update_error", contribution_id=contribution_id, error=str(e))
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500

    return jsonify({
        'success': True,
        'updated_fields': sorted(changes),
        'user': contribution.user.to_dict()
    })


@contribution_bp.route('/api/contributions/<int:contribution_id>/invalid_refund', methods=['POST'])
def reembolso_invalido(contribution_id):
    contribution = db.get_or_404(Contribution, contribution_id)
    try:
        contribution.invalid_refund()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("invalid_refund_error", contribution_id=contribution_id, error=str(e))
        return jsonify({'success': False, 'error': 'Erro interno do servidor'}), 500

    return jsonify({
        'success': True,
        'over_refund_limit': contribution.over_refund_limit()
    })
