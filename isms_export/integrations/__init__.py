"""isms_export.integrations: External data source gateways.

All reads from AWS must go through a gateway in this package, never via
bare boto3 calls in services or blueprints.

Current gateways:
  record_gateway.RecordGateway: DynamoDB policy/evidence tables
"""
