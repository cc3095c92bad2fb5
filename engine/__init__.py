"""
ENGINE MODULE - Prediction and scoring engine
==============================================

- base_engine: neutral-start base prediction (PredictionEngine)
- mlb_model: MLB-specific prediction model
- algorithms/: ML Power Index, Value Pick Finder, Statistical Edge
- calibration: performance-driven confidence calibration
- smart_score: six-factor composite score
- arbitrage: cross-book arbitrage detection
- prediction_cache: per-match prediction lock with TTL and persistence
- annotation: non-destructive Match annotation

Submodules are imported directly (engine.base_engine, engine.smart_score, ...);
this package re-exports nothing because the signal modules depend on
engine.team_strength.
"""
