#!/usr/bin/env python3
"""
Basic glyphpatterns Usage Example

This example demonstrates the core workflow:
1. Segment a page image into a region of sections and glyphs
2. Classify the initial glyphs
3. Run the correction patterns
4. Configure the engine from code or YAML
5. Switch the default evaluator at runtime
"""

from pathlib import Path

from PIL import Image

from glyphpatterns import (
    DEFAULT_EVALUATOR,
    DotPatternConfig,
    EngineConfig,
    EvaluatorDescriptor,
    EvaluatorKind,
    GlyphValue,
    Line,
    PatternOrchestrator,
    Scale,
    TemplateEvaluator,
    TextLine,
    build_region,
    load_config,
    run_patterns,
)
from glyphpatterns.segmentation import AdaptiveDescriptor


def main():
    # ─────────────────────────────────────────────────────────────────────────
    # 1. Segmentation
    # ─────────────────────────────────────────────────────────────────────────

    image = Image.open("path/to/system.png")

    # Adaptive filtering copes with uneven scans
    region = build_region(
        image,
        AdaptiveDescriptor(mean_coeff=0.7, std_dev_coeff=0.9, window=31),
        region_id=1,
        scale=Scale(interline=18),
    )
    print(f"Segmented: {region}")

    # Sentences come from a text-line detector
    region.sentences = [TextLine(Line(40, 310, 420, 312))]

    # ─────────────────────────────────────────────────────────────────────────
    # 2. Initial classification
    # ─────────────────────────────────────────────────────────────────────────

    evaluator = TemplateEvaluator(distance_scale=1.5)
    for glyph in region.glyphs:
        vote = evaluator.evaluate(glyph, region, min_grade=0.3)
        if vote is not None:
            glyph.set_evaluation(vote)

    # ─────────────────────────────────────────────────────────────────────────
    # 3. Corrections
    # ─────────────────────────────────────────────────────────────────────────

    reports, stats = run_patterns([region], evaluator=evaluator)
    for report in reports:
        print(f"Region {report.region_id}: {report.corrections}")
        if report.failed:
            print(f"  FAILED: {report.error}")

    print(f"Total corrections: {stats.total_corrections}")

    # ─────────────────────────────────────────────────────────────────────────
    # 4. Configuration
    # ─────────────────────────────────────────────────────────────────────────

    config = EngineConfig(
        dot=DotPatternConfig(max_line_dx=8.0),  # Interline fractions
        max_passes=2,  # Run the sequence again if something changed
        validate_graph=True,  # Check ownership after each pattern
    )
    orchestrator = PatternOrchestrator.from_config(config, evaluator)
    orchestrator.run_region(region)

    # Same settings from a file
    config = load_config("path/to/engine.yaml")  # noqa: F841

    # ─────────────────────────────────────────────────────────────────────────
    # 5. Live evaluator setting
    # ─────────────────────────────────────────────────────────────────────────

    # Orchestrators built this way follow DEFAULT_EVALUATOR
    orchestrator = PatternOrchestrator.with_default_evaluator()
    DEFAULT_EVALUATOR.set(EvaluatorDescriptor(EvaluatorKind.TEMPLATE, {"distance_scale": 2.0}))
    orchestrator.run_region(region)


def training_example():
    """Train templates from glyphs a human has labelled."""
    region = build_region(Image.open("path/to/labelled.png"), scale=Scale(interline=18))

    # ... shapes assigned by an operator ...
    samples = [GlyphValue.from_glyph(g) for g in region.glyphs if g.shape is not None]
    evaluator = TemplateEvaluator.from_samples(samples)

    print(f"Trained {evaluator!r}")
    return evaluator


def batch_example():
    """Correct many regions at once, on a thread pool."""
    paths = sorted(Path("systems/").glob("*.png"))
    regions = [
        build_region(Image.open(path), region_id=i + 1, scale=Scale(interline=18))
        for i, path in enumerate(paths)
    ]

    config = EngineConfig(parallel=True, max_workers=8)
    reports, stats = run_patterns(regions, config)

    print(f"{stats.regions_processed} regions, {stats.regions_failed} failed")
    print(f"Corrections by pattern: {stats.corrections_by_pattern}")


if __name__ == "__main__":
    # Note: These examples use placeholder paths.
    # Replace with actual image paths to run.
    print("glyphpatterns Usage Examples")
    print("=" * 50)
    print("\nSee the code for detailed examples of:")
    print("  - Segmentation")
    print("  - Classification")
    print("  - Stem and dot corrections")
    print("  - Configuration")
    print("  - Live evaluator setting")
    print("  - Template training")
    print("  - Batch processing")
