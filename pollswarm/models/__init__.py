from .change_event import ChangeEvent as ChangeEvent
