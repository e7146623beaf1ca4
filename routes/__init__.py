from .project_routes import project_bp
from .contribution_routes import contribution_bp

def register_routes(app):
    app.register_blueprint(project_bp)
    app.register_blueprint(contribution_bp)
