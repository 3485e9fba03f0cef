"""
Model Train Engines

A ModelTrainEngine turns (X, y, TrainingConfig) into a trained model.

- The forest algorithm itself is a black box (scikit-learn).
- Engines own the mapping TrainingConfig -> estimator params, nothing else.
- Engines never touch the filesystem; persistence belongs to the
  artifact step.

Artifact contract (training-defined, inference-consumed):

artifact["model"]
    The fitted estimator.

artifact["feature_order"]
    Feature order that MUST match inference-time expectations.

artifact["training_config"]
    The TrainingConfig payload the model was fitted with.
"""
