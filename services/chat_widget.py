"""
Widget de chat carregado apenas no checkout de alguns projetos.

O widget fica atrás de uma interface simples para que a lógica do checkout
não dependa do script de terceiros.
"""
import time
from security import logger


class ChatWidget:
    def load(self):
        raise NotImplementedError

    def is_ready(self):
        raise NotImplementedError

    def show(self):
        raise NotImplementedError

    def hide(self):
        raise NotImplementedError


def bootstrap_chat_widget(widget, attempts=20, interval=0.5, sleep=time.sleep):
    """
    Carrega o widget e o mantém escondido assim que ele estiver pronto.

    Verifica a prontidão no máximo ``attempts`` vezes. Se o widget nunca ficar
    pronto, desiste em silêncio e retorna False.
    """
    widget.load()
    for _ in range(attempts):
        if widget.is_ready():
            widget.hide()
            return True
        sleep(interval)

    logger.info("chat_widget_not_ready", attempts=attempts)
    return False
