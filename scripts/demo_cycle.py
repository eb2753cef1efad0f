"""
Readiness Risk Engine - End-to-End Cycle Demo

This script demonstrates the full data flow over a simulated shift:
1. Numeric models
2. Risk classification
3. Alert rule evaluation (sustain, escalation, auto-resolve)
4. Operator acknowledgement
5. Unit rollups
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import datetime, timedelta, timezone

import numpy as np

from riskengine.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

print('='*60)
print('READINESS RISK ENGINE - END-TO-END CYCLE DEMO')
print('='*60)

# Step 1: Numeric models
print('\n[1] NUMERIC MODELS')
from riskengine.scoring import (
    EnvironmentSample,
    PersonSnapshot,
    RecoverySample,
    SleepSample,
    VitalSample,
    heat_index,
    readiness_index,
    wbgt,
)

print(f'   - heat_index(32C, 70%): {heat_index(32, 70)}')
print(f'   - wbgt(34, 27, 45, outdoors): {wbgt(34, 27, 45):.2f}')
print(f'   - readiness_index(60, 100, 0, 0): {readiness_index(60, 100, 0, 0)}')

# Step 2: Risk classification
print('\n[2] RISK CLASSIFICATION')
from riskengine.rules import heat_risk

for w in [24.0, 27.0, 30.0, 33.0]:
    print(f'     WBGT={w:.0f} -> Risk={heat_risk(w, 0.0, 90.0, 0.8).value}')

# Step 3: Alert rules over a simulated shift
print('\n[3] ALERT RULE EVALUATION')
from riskengine import EvaluationCycle
from riskengine.events import AlertRuleEngine, Observation
from riskengine.rules import AlertAction, AlertCondition, AlertRule, AlertSeverity, AlertType

rules = [
    AlertRule(
        id='hr-sustained',
        name='Sustained tachycardia',
        conditions=[AlertCondition(parameter='heart_rate', operator='gt', value=150, duration=3)],
        severity=AlertSeverity.WARNING,
        alert_type=AlertType.VITAL_ABNORMAL,
        actions=[
            AlertAction(type='notify', target=['medic']),
            AlertAction(type='escalate', target=['commander']),
        ],
        escalate_after=5,
    ),
    AlertRule(
        id='heat-critical',
        name='Critical heat risk',
        conditions=[AlertCondition(parameter='heat_risk', operator='gte', value=3)],
        severity=AlertSeverity.CRITICAL,
        alert_type=AlertType.HEAT_STRESS,
    ),
    # Malformed: skipped every tick, never fatal
    {'id': 'broken', 'conditions': [{'parameter': 'spo2', 'operator': 'between', 'value': 90}]},
]

np.random.seed(42)
start = datetime(2026, 7, 1, 12, 0, tzinfo=timezone.utc)
cycle = EvaluationCycle(
    alert_engine=AlertRuleEngine(tick_interval=1.0, escalation_after=60),
    unit_names={'alpha': 'Alpha Platoon'},
)
state = None

heart_rates = np.concatenate([np.full(3, 120.0), np.full(10, 160.0), np.full(3, 110.0)])
for i, hr in enumerate(heart_rates):
    now = start + timedelta(seconds=i)
    personnel = [
        PersonSnapshot(
            person_id='P-01', unit_id='alpha', age=28,
            vitals=VitalSample(heart_rate=hr, respiratory_rate=18, spo2=97, skin_temp=37.2, timestamp=now),
            sleep=SleepSample(total_minutes=420, deep_minutes=80, light_minutes=250, rem_minutes=90, fragmentations=2),
            recovery=RecoverySample(hrv=55, resting_hr=58, hydration_level=70),
            environment=EnvironmentSample(
                dry_bulb_temp=34, wet_bulb_temp=27 + np.random.normal(0, 0.3), globe_temp=45,
                temperature=34, humidity=55, timestamp=now,
            ),
            training_load=1.0, heat_exposure=2.0, activity_level=0.8, activity_load=40,
        ),
        PersonSnapshot(
            person_id='P-02', unit_id='alpha', age=35,
            recovery=RecoverySample(hrv=70, resting_hr=52, sleep_score=88, hydration_level=85),
        ),
    ]
    observations = [Observation(entity_id='P-01', parameter='heart_rate', value=hr, timestamp=now)]
    result = cycle.run(observations, rules, state, personnel=personnel, now=now)
    state = result.state

    for t in result.tick.transitions:
        from_state = t.from_state.value if t.from_state else 'inactive'
        print(f'   t+{i:02d}s {t.entity_id} {t.rule_id}: {from_state} -> {t.to_state.value} '
              f'({t.severity.value}, level {t.escalation_level})')

    # Step 4: Operator acknowledges the first open heart-rate alert
    hr_alerts = [a for a in result.tick.open_alerts if a.rule_id == 'hr-sustained']
    if hr_alerts and hr_alerts[0].acknowledged_at is None:
        state = cycle.alert_engine.acknowledge(state, hr_alerts[0].id, note='Medic en route', by='medic-1', now=now)
        print(f'   t+{i:02d}s operator acknowledged {hr_alerts[0].id[:8]}')

print(f'   [OK] Skipped malformed rules: {[s.rule_id for s in result.tick.skipped_rules]}')

# Step 5: Unit rollups
print('\n[5] UNIT ROLLUPS')
for unit in result.units:
    print(f'   {unit.unit_name}: readiness={unit.readiness_index}, personnel={unit.personnel_count}, '
          f'heat={unit.heat_risk.value}, fatigue={unit.fatigue_risk.value}, '
          f'open alerts={unit.active_alerts} (critical {unit.critical_alerts})')

print('\n' + '='*60)
print('[SUCCESS] ALL CYCLE STAGES VERIFIED SUCCESSFULLY!')
print('='*60)
