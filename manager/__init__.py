from .manager import Manager

manager = Manager()

__all__ = ["Manager", "manager"]
