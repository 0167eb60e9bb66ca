"""LearnPath: topic learning surveys backed by a document store and a language model."""
