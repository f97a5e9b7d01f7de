from risk_engine.population import STAT_FEATURES, FeatureRange, compute_population_stats


def test_empty_batch_is_degenerate():
    stats = compute_population_stats([])

    assert set(stats.ranges) == set(STAT_FEATURES)
    for name in STAT_FEATURES:
        assert stats.range_for(name) == FeatureRange(0.0, 0.0)


def test_min_max_per_feature(make_vector):
    stats = compute_population_stats([
        make_vector("A", leverage_ratio=0.2, unique_asset_count=4, behavior_volatility=1.5),
        make_vector("B", leverage_ratio=1.1, unique_asset_count=1, behavior_volatility=0.0),
        make_vector("C", leverage_ratio=0.5, unique_asset_count=2, behavior_volatility=0.7),
    ])

    assert stats.range_for("leverage_ratio") == FeatureRange(0.2, 1.1)
    assert stats.range_for("unique_asset_count") == FeatureRange(1.0, 4.0)
    assert stats.range_for("behavior_volatility") == FeatureRange(0.0, 1.5)
    assert stats.range_for("consistent_repayment").span == 0.0


def test_single_vector_has_zero_span(make_vector):
    stats = compute_population_stats([make_vector(activity_duration_days=12.0)])
    assert stats.range_for("activity_duration_days") == FeatureRange(12.0, 12.0)


def test_as_dict_lists_every_feature(make_vector):
    stats = compute_population_stats([make_vector()])
    assert set(stats.as_dict()) == set(STAT_FEATURES)
    assert stats.as_dict()["leverage_ratio"] == {"min": 0.4, "max": 0.4}
