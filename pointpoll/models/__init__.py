# pointpoll/models/__init__.py
from pointpoll.models.user import User
from pointpoll.models.poll import Poll
from pointpoll.models.choice import Choice
from pointpoll.models.ballot import Ballot
from pointpoll.models.vote import Vote

__all__ = ["User", "Poll", "Choice", "Ballot", "Vote"]
