"""HTTP actions worker with its handlers, source protocols, metrics and configuration."""