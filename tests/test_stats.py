import math
from datetime import datetime, time, timedelta, timezone

import pytest

from analysis.models import Symptoms
from analysis.stats import (
    categorical_mode,
    mean,
    mean_time_of_day,
    median,
    most_common_hour,
    most_common_weekday,
    summarize,
    value_range,
    weekday_number,
)


class TestPrimitives:
    """Aggregates ignore missing values and return None without data."""

    def test_empty_inputs_return_none(self):
        assert mean([]) is None
        assert median([]) is None
        assert value_range([]) is None
        assert categorical_mode([]) is None
        assert most_common_hour([]) is None
        assert most_common_weekday([]) is None
        assert mean_time_of_day([]) is None

    def test_missing_values_are_skipped(self):
        values = [None, math.nan, 2.0, 4.0]
        assert mean(values) == 3.0
        assert median(values) == 3.0
        assert value_range(values) == (2.0, 4.0)
        assert mean([None, math.nan]) is None

    def test_median_even_and_odd(self):
        assert median([5, 1, 3]) == 3.0
        assert median([4, 1, 3, 2]) == 2.5

    def test_mode_majority(self):
        assert categorical_mode(["rain", "rain", "clear"]) == "rain"
        assert categorical_mode(["a", "b"]) == "a"

    def test_mode_tie_breaks_on_string_order(self):
        assert categorical_mode(["rain", "clear", "rain", "clear", "fog"]) == "clear"
        assert categorical_mode(["b", None, "a", None, None]) == "a"
        assert categorical_mode([None, math.nan]) is None


class TestTimeStatistics:
    def test_weekday_numbering_starts_on_sunday(self):
        assert weekday_number(datetime(2024, 3, 17)) == 1  # Sunday
        assert weekday_number(datetime(2024, 3, 18)) == 2  # Monday
        assert weekday_number(datetime(2024, 3, 23)) == 7  # Saturday

    def test_hour_and_weekday_ties_prefer_larger(self):
        stamps = [datetime(2024, 3, 17, 8), datetime(2024, 3, 18, 20)]
        assert most_common_hour(stamps) == 20
        assert most_common_weekday(stamps) == 2

    def test_hour_mode(self):
        stamps = [datetime(2024, 3, d, 6) for d in (1, 2, 3)] + [datetime(2024, 3, 4, 22)]
        assert most_common_hour(stamps) == 6

    def test_timezone_conversion(self):
        utc = [datetime(2024, 3, 17, 23, 30, tzinfo=timezone.utc)]
        plus_two = timezone(timedelta(hours=2))
        assert most_common_hour(utc, tz=plus_two) == 1
        assert most_common_weekday(utc, tz=plus_two) == 2

    def test_circular_mean_wraps_midnight(self):
        times = [time(23, 50), time(0, 10)]
        assert mean_time_of_day(times) == time(0, 0)
        assert mean_time_of_day(times, method="linear") == time(12, 0)

    def test_circular_mean_of_ordinary_times(self):
        assert mean_time_of_day([time(22, 0), time(23, 0)]) == time(22, 30)

    def test_opposite_times_have_no_mean(self):
        assert mean_time_of_day([time(6, 0), time(18, 0)]) is None

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            mean_time_of_day([time(1, 0)], method="median")


class TestSummarize:
    def test_empty_history(self):
        s = summarize([])
        assert s.count == 0
        assert s.mean_intensity is None
        assert s.most_common_weekday is None
        assert s.mean_bedtime is None
        assert s.symptom_frequencies == {}
        d = s.as_dict()
        assert d["mean_score"] is None
        assert d["most_common_weekday_name"] is None

    def test_summary_over_records(self, record_factory):
        base = datetime(2024, 3, 18, 9, 0)  # Monday
        records = [
            record_factory(base, intensity=0.2, temperature=10.0, weather_condition="rain",
                           sleep_start=datetime(2024, 3, 17, 23, 0), sleep_end=datetime(2024, 3, 18, 6, 0),
                           sleep_duration=7 * 3600.0,
                           symptoms=Symptoms(nausea=True, pain_location_tags=("left temple",))),
            record_factory(base + timedelta(days=1), intensity=0.6, weather_condition="rain",
                           symptoms=Symptoms(nausea=True, visual_aura=True, mood="irritable")),
            record_factory(base + timedelta(days=7), intensity=1.0, temperature=0.0, pressure=1002.0,
                           sleep_start=datetime(2024, 3, 25, 1, 0), sleep_end=datetime(2024, 3, 25, 6, 0),
                           sleep_duration=5 * 3600.0,
                           symptoms=Symptoms(pain_location_tags=("left temple", "neck"))),
        ]
        s = summarize(records)
        assert s.count == 3
        assert s.mean_intensity == pytest.approx(0.6)
        assert s.mean_score == pytest.approx(6.0)
        assert s.most_common_weather == "rain"
        assert s.most_common_weekday == 2
        assert s.most_common_weekday_name == "Monday"
        assert s.most_common_hour == 9
        # NaN temperature on the middle record is skipped; 0 °C is real data
        assert s.temperature_range == (0.0, 10.0)
        assert s.pressure_range == (1002.0, 1002.0)
        assert s.median_sleep_hours == 6.0
        assert s.mean_bedtime == time(0, 0)
        assert s.mean_wake_time == time(6, 0)
        assert s.symptom_frequencies["nausea"] == 2
        assert s.symptom_frequencies["visual_aura"] == 1
        assert s.symptom_frequencies["vomiting"] == 0
        assert s.pain_location_tags == {"left temple": 2, "neck": 1}
        assert s.most_common_mood == "irritable"
        assert s.first_logged == base

        d = s.as_dict()
        assert d["mean_bedtime"] == "00:00"
        assert d["temperature_range"] == [0.0, 10.0]
        assert d["first_logged"] == base.isoformat()
