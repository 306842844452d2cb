# Feature modules: models, schemas, services and router per module
