# init_db.py - Dados de exemplo para desenvolvimento
from decimal import Decimal
from database import db
from models.country import Country
from models.user import User
from models.project import Project
from models.reward import Reward
from security import logger

def init_sample_data():
    """Cria (ou atualiza) um projeto de exemplo com recompensas; deve rodar dentro do app context"""
    brasil = Country.query.filter_by(name='Brasil').first()
    if not brasil:
        brasil = Country(name='Brasil')
        db.session.add(brasil)

    owner = User.query.filter_by(email='realizador@example.com').first()
    if not owner:
        owner = User(email='realizador@example.com', name='Realizador Exemplo',
                     public_name='Coletivo Exemplo', country=brasil)
        db.session.add(owner)

    project = Project.query.filter_by(permalink='projeto-exemplo').first()
    if not project:
        project = Project(name='Projeto Exemplo', permalink='projeto-exemplo',
                          category='Música', user=owner, state='online')
        db.session.add(project)

    sample_rewards = [
        {"minimum_value": Decimal('25.00'), "description": "Agradecimento nas redes sociais", "shipping_options": "free"},
        {"minimum_value": Decimal('100.00'), "description": "Disco autografado", "shipping_options": "national"},
        {"minimum_value": Decimal('500.00'), "description": "Show particular", "shipping_options": "presential"},
    ]

    atualizados = 0
    adicionados = 0

    for r_data in sample_rewards:
        reward = Reward.query.filter_by(project_id=project.id, description=r_data['description']).first() \
            if project.id else None
        if reward:
            reward.minimum_value = r_data['minimum_value']
            reward.shipping_options = r_data['shipping_options']
            atualizados += 1
        else:
            db.session.add(Reward(project=project, **r_data))
            adicionados += 1

    db.session.commit()
    logger.info("sample_data_initialized", atualizados=atualizados, adicionados=adicionados)
    return project
