"""GraphQL documents sent to the Linear API."""

TEAMS_QUERY = """
query Teams {
  teams {
    nodes {
      id
      name
      key
    }
  }
}
"""

TEAM_PROJECTS_QUERY = """
query TeamProjects($teamId: String!) {
  team(id: $teamId) {
    projects {
      nodes {
        id
        name
        description
        state
      }
    }
  }
}
"""

TEAM_WORKFLOW_STATES_QUERY = """
query TeamWorkflowStates($teamId: String!) {
  team(id: $teamId) {
    states {
      nodes {
        id
        name
        type
        color
      }
    }
  }
}
"""

TEAM_LABEL_BY_NAME_QUERY = """
query TeamLabelByName($teamId: String!, $name: String!) {
  team(id: $teamId) {
    labels(filter: { name: { eq: $name } }) {
      nodes {
        id
        name
        color
      }
    }
  }
}
"""

CREATE_LABEL_MUTATION = """
mutation CreateLabel($teamId: String!, $name: String!, $color: String!) {
  issueLabelCreate(input: { teamId: $teamId, name: $name, color: $color }) {
    success
    issueLabel {
      id
      name
      color
    }
  }
}
"""

CREATE_ISSUE_MUTATION = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      title
      description
      priority
      url
      state {
        id
        name
      }
      labels {
        nodes {
          id
          name
          color
        }
      }
    }
  }
}
"""
