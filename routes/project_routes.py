from flask import Blueprint, jsonify, current_app
from database import db
from models.project import Project
from models.project_transfer import ProjectTransfer
from security import cache, logger

project_bp = Blueprint('projects', __name__)


@project_bp.route('/api/projects/<int:project_id>/rewards', methods=['GET'])
@cache.cached(timeout=300)
def listar_recompensas(project_id):
    """Recompensas oferecidas pelo projeto, da menor para a maior"""
    project = db.get_or_404(Project, project_id)
    logger.info("recompensas_carregadas", project_id=project.id, quantidade=len(project.rewards))
    return jsonify({
        'success': True,
        'rewards': [r.to_dict() for r in project.rewards]
    })


@project_bp.route('/api/projects/<int:project_id>/contributions/new', methods=['GET'])
def novo_apoio(project_id):
    """Dados necessários para montar a página de checkout"""
    project = db.get_or_404(Project, project_id)
    return jsonify({
        'success': True,
        'project': project.to_dict(),
        'rewards': [r.to_dict() for r in project.rewards],
        'free_pledge': not project.rewards,
        'minimum_value': float(current_app.config['MINIMUM_CONTRIBUTION_VALUE']),
        'chat_widget': project.id in current_app.config['CHAT_WIDGET_PROJECT_IDS']
    })


@project_bp.route('/api/projects/<int:project_id>/transfer', methods=['GET'])
def obter_repasse(project_id):
    db.get_or_404(Project, project_id)
    transfer = db.get_or_404(ProjectTransfer, project_id)
    return jsonify({
        'success': True,
        'transfer': transfer.to_dict()
    })
