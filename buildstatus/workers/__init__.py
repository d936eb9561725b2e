from .publisher import EndOfStream, PublishSchedule, ScheduleState, StatusPublisher, StatusSink

__all__ = ["EndOfStream", "PublishSchedule", "ScheduleState", "StatusPublisher", "StatusSink"]
