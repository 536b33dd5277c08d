"""Domain models for the frequency catalog."""
from omnibus.models.county import County
from omnibus.models.frequency import ExportFlag, Frequency
from omnibus.models.radio import ExportProfile, Radio
from omnibus.models.setting import DEFAULT_SETTINGS, AppSetting, SettingType
from omnibus.models.trunked import CompleteSystem, Talkgroup, TrunkedSite, TrunkedSystem

__all__ = [
    "Frequency", "ExportFlag",
    "TrunkedSystem", "TrunkedSite", "Talkgroup", "CompleteSystem",
    "Radio", "ExportProfile",
    "County",
    "AppSetting", "SettingType", "DEFAULT_SETTINGS",
]
