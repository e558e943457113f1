# pgf_runtime/shared/container.py
from dependency_injector import containers, providers

from pgf_runtime.adapters.engines.pgf_engine import PGFGrammarEngine


class Container(containers.DeclarativeContainer):
    """
    Dependency Injection Container.
    Connects the grammar engine adapter to the HTTP routers; the routers
    are wired by create_app().
    """

    # The decoded grammar is immutable and shared by every request.
    grammar_engine = providers.Singleton(PGFGrammarEngine)


# Global Container Instance
container = Container()
