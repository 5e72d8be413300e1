from .board_tasks import BoardTaskCache

__all__ = ["BoardTaskCache"]
