"""
Alert rule evaluator tests.
"""

import pytest
from pydantic import ValidationError

from weatherdash.alerts import WINDOW_HOURS, evaluate
from weatherdash.schemas import Alert


def codes(alerts):
    return [alert.code for alert in alerts]


class TestEvaluate:

    @pytest.mark.parametrize("payload", [{}, None, "garbage", 42, [], {"data": None}])
    def test_unusable_payload_yields_nothing(self, payload):
        assert evaluate(payload) == []

    def test_empty_timelines_yield_nothing(self, make_payload):
        assert evaluate(make_payload(hourly=[])) == []

    def test_calm_weather_yields_nothing(self, make_payload):
        payload = make_payload(
            hourly=[{"windSpeed": 3, "precipitationProbability": 10}] * 12,
            current={"uvIndex": 4},
            daily=[{"temperatureMax": 31, "temperatureMin": 24}],
        )
        assert evaluate(payload) == []

    def test_missing_values_are_not_hazards(self, make_payload):
        payload = make_payload(hourly=[{}, {}], current={}, daily=[{}])
        assert evaluate(payload) == []


class TestStrongWind:

    def test_single_alert_keyed_to_first_windy_hour(self, make_payload):
        hourly = [{"windSpeed": 2}] * 12
        hourly[0] = {"windSpeed": 20}
        hourly[5] = {"windSpeed": 20}

        alerts = evaluate(make_payload(hourly=hourly))

        assert codes(alerts) == ["strong_wind"]
        assert alerts[0].level == "warning"
        assert "2025-01-15T00:00:00+07:00" in alerts[0].message
        assert "20 m/s" in alerts[0].message

    def test_threshold_is_inclusive(self, make_payload):
        alerts = evaluate(make_payload(hourly=[{"windSpeed": 14.9}, {"windSpeed": 15}]))
        assert codes(alerts) == ["strong_wind"]
        assert "T01:00" in alerts[0].message

    def test_hours_beyond_window_are_ignored(self, make_payload):
        hourly = [{"windSpeed": 1}] * WINDOW_HOURS + [{"windSpeed": 30}]
        assert evaluate(make_payload(hourly=hourly)) == []

    def test_imperial_label(self, make_payload):
        alerts = evaluate(make_payload(hourly=[{"windSpeed": 22.4}]), units="imperial")
        assert "22 mph" in alerts[0].message


class TestRain:

    def test_heavy_rain_beats_earlier_high_probability(self, make_payload):
        hourly = [{}] * 6
        hourly[1] = {"precipitationProbability": 75}
        hourly[3] = {"precipitationIntensity": 7, "precipitationProbability": 80}

        alerts = evaluate(make_payload(hourly=hourly))

        assert codes(alerts) == ["heavy_rain"]
        assert alerts[0].level == "danger"
        assert "~7 mm/h" in alerts[0].message
        assert "POP 80%" in alerts[0].message
        assert "2025-01-15T03:00:00+07:00" in alerts[0].message

    def test_heavy_rain_without_probability(self, make_payload):
        alerts = evaluate(make_payload(hourly=[{"precipitationIntensity": 6.5}]))
        assert codes(alerts) == ["heavy_rain"]
        assert "~6.5 mm/h (POP 0%)" in alerts[0].message

    def test_possible_rain_uses_first_high_probability(self, make_payload):
        hourly = [
            {"precipitationProbability": 40},
            {"precipitationProbability": 72.5},
            {"precipitationProbability": 95},
        ]
        alerts = evaluate(make_payload(hourly=hourly))

        assert codes(alerts) == ["possible_rain"]
        assert alerts[0].level == "notice"
        assert alerts[0].message.startswith("73% chance of rain")
        assert "12 hours" in alerts[0].message

    def test_never_both_rain_alerts(self, make_payload):
        hourly = [{"precipitationIntensity": 10, "precipitationProbability": 90}] * 12
        found = codes(evaluate(make_payload(hourly=hourly)))
        assert found.count("heavy_rain") == 1
        assert "possible_rain" not in found

    def test_below_thresholds(self, make_payload):
        hourly = [{"precipitationIntensity": 5.9, "precipitationProbability": 69}] * 12
        assert evaluate(make_payload(hourly=hourly)) == []


class TestDaily:

    @pytest.mark.parametrize("temp_max,expected", [(36, True), (35, True), (34, False)])
    def test_heat(self, make_payload, temp_max, expected):
        alerts = evaluate(make_payload(daily=[{"temperatureMax": temp_max}]))
        if expected:
            assert codes(alerts) == ["heat"]
            assert str(temp_max) in alerts[0].message
        else:
            assert alerts == []

    @pytest.mark.parametrize("temp_min,expected", [(1, True), (2, True), (3, False)])
    def test_freeze(self, make_payload, temp_min, expected):
        alerts = evaluate(make_payload(daily=[{"temperatureMin": temp_min}]))
        assert ("freeze" in codes(alerts)) is expected

    def test_only_today_is_checked(self, make_payload):
        payload = make_payload(
            daily=[
                {"temperatureMax": 30, "temperatureMin": 20},
                {"temperatureMax": 40, "temperatureMin": -5},
            ]
        )
        assert evaluate(payload) == []

    def test_rounding_is_half_up(self, make_payload):
        alerts = evaluate(
            make_payload(daily=[{"temperatureMax": 35.5, "temperatureMin": -2.5}])
        )
        assert "36°" in alerts[0].message
        assert "-2°" in alerts[1].message


class TestUV:

    def test_high_uv_from_current(self, make_payload):
        alerts = evaluate(make_payload(current={"uvIndex": 9}))
        assert codes(alerts) == ["high_uv"]
        assert "UV index 9." in alerts[0].message

    def test_raw_value_is_kept(self, make_payload):
        alerts = evaluate(make_payload(current={"uvIndex": 8.5}))
        assert "UV index 8.5." in alerts[0].message

    def test_moderate_uv(self, make_payload):
        assert evaluate(make_payload(current={"uvIndex": 7})) == []

    def test_hourly_uv_is_ignored(self, make_payload):
        assert evaluate(make_payload(hourly=[{"uvIndex": 11}])) == []


class TestOrderingAndFaults:

    def test_emission_order(self, make_payload):
        payload = make_payload(
            hourly=[
                {"precipitationProbability": 80},
                {"windSpeed": 18, "precipitationIntensity": 8},
            ],
            current={"uvIndex": 10},
            daily=[{"temperatureMax": 37, "temperatureMin": 0}],
        )
        assert codes(evaluate(payload)) == [
            "strong_wind",
            "heat",
            "freeze",
            "heavy_rain",
            "high_uv",
        ]

    def test_repeated_calls_are_independent(self, make_payload):
        payload = make_payload(hourly=[{"windSpeed": 16}], current={"uvIndex": 9})
        assert evaluate(payload) == evaluate(payload)

    def test_fault_keeps_alerts_already_found(self, make_payload):
        payload = make_payload(hourly=[{"windSpeed": 20}])
        payload["data"]["timelines"][0]["intervals"].append(None)

        assert codes(evaluate(payload)) == ["strong_wind"]

    def test_fault_in_window_stops_later_rules(self, make_payload):
        payload = make_payload(
            hourly=[{"windSpeed": 20, "precipitationIntensity": 8, "precipitationProbability": 90}],
            current={"uvIndex": 9},
            daily=[{"temperatureMax": 37}],
        )
        payload["data"]["timelines"][1]["intervals"].append(None)

        assert codes(evaluate(payload)) == ["strong_wind"]

    def test_fault_before_any_alert(self, make_payload):
        payload = make_payload(
            hourly=[{"windSpeed": "strong"}], current={"uvIndex": 9}
        )
        assert evaluate(payload) == []

    def test_alerts_are_immutable(self, make_payload):
        alert = evaluate(make_payload(current={"uvIndex": 9}))[0]
        assert isinstance(alert, Alert)
        with pytest.raises(ValidationError):
            alert.level = "danger"
