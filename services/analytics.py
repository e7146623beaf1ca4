from security import logger

CONTRIBUTION_CATEGORY = 'contribution_create'


class AnalyticsSink:
    """Destino dos eventos de analytics (fire-and-forget)"""

    def emit(self, category, action, label=None, value=None):
        raise NotImplementedError


class LoggingAnalyticsSink(AnalyticsSink):
    def emit(self, category, action, label=None, value=None):
        logger.info("analytics_event", category=category, action=action, label=label, value=value)
